"""Fire-and-forget form submission for feedback notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set

import httpx

log = logging.getLogger("lostitem.notify")


class FormNotifier:
    """Posts values to an external form endpoint without blocking the caller.

    `fields` maps logical names (item, location, note, status) to the form's
    field ids; unmapped names are sent as-is.
    """

    def __init__(
        self,
        url: str,
        fields: Optional[Dict[str, str]] = None,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.fields = dict(fields or {})
        self.timeout = timeout
        self.transport = transport
        self._tasks: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def build_form_data(self, values: Dict[str, str]) -> Dict[str, str]:
        data = {self.fields.get(name, name): value for name, value in values.items()}
        data["submit"] = "Submit"
        return data

    async def send(self, values: Dict[str, str]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, data=self.build_form_data(values))
            response.raise_for_status()

    def dispatch(self, values: Dict[str, str]) -> Optional[asyncio.Task]:
        if not self.enabled:
            log.debug("feedback notification disabled; no form url configured")
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("no running event loop; feedback notification skipped")
            return None

        task = loop.create_task(self.send(values))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            log.info("feedback notification cancelled")
            return
        exc = task.exception()
        if exc is not None:
            log.warning("feedback notification failed: %r", exc)
        else:
            log.info("feedback notification delivered")
