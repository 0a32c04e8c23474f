"""Reading bookings, forwarded to an external form without waiting on it."""

import asyncio
import logging
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .notify import FormNotifier

log = logging.getLogger("lostitem.booking")


class BookingRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    contact: str = Field(..., min_length=1, max_length=200)
    topic: str = Field(..., min_length=1, max_length=100)
    mode: str = Field(..., min_length=1, max_length=100)
    message: str = Field("", max_length=2000)


def booking_values(req: BookingRequest) -> Dict[str, str]:
    return {
        "name": req.name.strip(),
        "contact": req.contact.strip(),
        "topic": req.topic,
        "mode": req.mode,
        "message": req.message.strip(),
    }


def submit_booking(req: BookingRequest, notifier: FormNotifier) -> Optional[asyncio.Task]:
    """Dispatch the booking; delivery failures are only logged by the notifier."""
    values = booking_values(req)
    if not values["name"] or not values["contact"]:
        raise ValueError("name and contact are required")
    log.info("booking submitted topic=%r mode=%r", values["topic"], values["mode"])
    return notifier.dispatch(values)
