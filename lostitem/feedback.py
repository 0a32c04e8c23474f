"""Feedback on the last divination: local record, text export, outbound notification."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import InterpretationContext
from .notify import FormNotifier
from .reading import ContextSlot
from .storage import RecordStore

log = logging.getLogger("lostitem.feedback")

FEEDBACK_STORE_KEY = "lost_item_feedback"

RESULT_LABELS = {
    "found": "Found it in the end",
    "not_found": "Not found yet",
}

_UNSAFE_NAME = re.compile(r"[^\w\-]+")


@dataclass
class FeedbackOutcome:
    ok: bool
    reason: Optional[str] = None
    record: Optional[Dict[str, Any]] = None
    stored: bool = False
    notification: Optional[asyncio.Task] = None


def build_feedback_record(
    ctx: InterpretationContext, status: str, note: str, now: Optional[datetime] = None
) -> Dict[str, Any]:
    record = ctx.model_dump(mode="json")
    record["result_status"] = status
    record["feedback_note"] = note
    record["feedback_at"] = (now or datetime.now(timezone.utc)).isoformat()
    return record


def format_feedback_record(record: Dict[str, Any]) -> str:
    cards = record.get("draw") if isinstance(record.get("draw"), list) else []
    card_line = " / ".join(c.get("name") for c in cards if isinstance(c, dict) and c.get("name"))

    lines = [
        f"Item: {record.get('item_name') or ''}",
        f"Drawn at: {record.get('created_at') or ''}",
        f"Cards: {card_line}",
        f"Result: {RESULT_LABELS.get(record.get('result_status'), RESULT_LABELS['not_found'])}",
    ]
    if record.get("feedback_note"):
        lines.append(f"Note: {record['feedback_note']}")
    if record.get("feedback_at"):
        lines.append(f"Feedback at: {record['feedback_at']}")
    return "\n".join(lines)


def export_filename(item_name: str, now: Optional[datetime] = None) -> str:
    """e.g. lost-item-headphones-2025-12-07T19-30-15.txt"""
    safe_name = _UNSAFE_NAME.sub("_", item_name or "lost-item")[:20]
    ts = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    return f"lost-item-{safe_name}-{ts}.txt"


def notification_values(ctx: InterpretationContext, status: str, note: str) -> Dict[str, str]:
    location = ctx.roles.location
    return {
        "item": ctx.item_name,
        "location": f"{location.area_hint} / {location.location_hint}",
        "note": note,
        "status": status,
    }


def submit_feedback(
    slot: ContextSlot,
    store: RecordStore,
    status: Optional[str],
    note: str = "",
    *,
    notifier: Optional[FormNotifier] = None,
    now: Optional[datetime] = None,
) -> FeedbackOutcome:
    """Record feedback against whatever divination is currently in the slot.

    Reports reason="no_context" when no divination has been made yet.
    """
    ctx = slot.current
    if ctx is None or not ctx.item_name:
        log.info("feedback submitted without a divination context")
        return FeedbackOutcome(ok=False, reason="no_context")
    if status not in RESULT_LABELS:
        return FeedbackOutcome(ok=False, reason="missing_status")

    note = (note or "").strip()
    record = build_feedback_record(ctx, status, note, now)

    stored = False
    try:
        store.append(record)
        stored = True
    except OSError as e:
        log.error("saving feedback record failed: %s", e)

    task = notifier.dispatch(notification_values(ctx, status, note)) if notifier else None
    return FeedbackOutcome(ok=True, record=record, stored=stored, notification=task)
