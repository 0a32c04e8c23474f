"""Mapping sources: where the card reference table comes from.

Three interchangeable strategies, all normalizing to a MappingSet:
- RemoteCsvSource: published CSV fetched over HTTP
- ProxiedJsonTableSource: JSON table wrapped in a callback, fetched through a relay
- EmbeddedSource: table shipped in data/mapping_embedded.json

Callers only see MappingSource.load(); nothing outside this module branches on
which strategy is configured.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import LoadError
from .models import CardMappingEntry, MappingSet

log = logging.getLogger("lostitem.sources")

DATA_PATH = Path(__file__).resolve().parent / "data" / "mapping_embedded.json"

# (entry field, column label)
COLUMNS = (
    ("code", "CardCode"),
    ("name", "CardName"),
    ("status_hint", "StatusHint"),
    ("location_hint", "LocationHint"),
    ("area_hint", "AreaHint"),
    ("action_hint", "ActionHint"),
)

JSON_PREFIX = "setResponse("
JSON_SUFFIX = ");"

_LINE_SPLIT = re.compile(r"\r?\n")


class ParsedTable(NamedTuple):
    entries: MappingSet
    skipped: int


# -------------------------------------------------------------------
# Column resolution
# -------------------------------------------------------------------

def resolve_columns(labels: Sequence[str]) -> Dict[str, int]:
    """Map entry fields to column positions by label.

    The first occurrence of a label wins. Raises LoadError when none of the
    known labels is present.
    """
    positions: Dict[str, int] = {}
    for pos, label in enumerate(labels):
        key = str(label or "").strip().lstrip("\ufeff")
        positions.setdefault(key, pos)

    resolved = {field: positions[label] for field, label in COLUMNS if label in positions}
    if not resolved:
        raise LoadError(
            "No mapping columns found; expected any of: " + ", ".join(label for _, label in COLUMNS)
        )
    return resolved


# -------------------------------------------------------------------
# CSV
# -------------------------------------------------------------------

def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line, honouring double-quoted fields and "" escapes."""
    cells: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            cells.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    cells.append("".join(current))
    return cells


def parse_csv_table(text: str) -> ParsedTable:
    lines = [line.strip() for line in _LINE_SPLIT.split(text or "")]
    lines = [line for line in lines if line]
    if not lines:
        raise LoadError("CSV payload is empty; no header row")

    columns = resolve_columns(parse_csv_line(lines[0]))
    max_idx = max(columns.values())

    entries: List[CardMappingEntry] = []
    skipped = 0
    for line in lines[1:]:
        cells = parse_csv_line(line)
        if max_idx >= len(cells):
            skipped += 1
            continue
        entries.append(CardMappingEntry(**{field: cells[idx].strip() for field, idx in columns.items()}))

    return ParsedTable(tuple(entries), skipped)


# -------------------------------------------------------------------
# Wrapped JSON table
# -------------------------------------------------------------------

def unwrap_payload(text: str, prefix: str = JSON_PREFIX, suffix: str = JSON_SUFFIX) -> Dict[str, Any]:
    """Strip the callback wrapper around a JSON table response and decode it."""
    text = text or ""
    start = text.find(prefix)
    end = text.rfind(suffix)
    if start < 0 or end < 0 or end < start + len(prefix):
        raise LoadError("JSON table wrapper not found in response")

    body = text[start + len(prefix):end]
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON inside table wrapper: {e}") from e
    if not isinstance(data, dict):
        raise LoadError("JSON table payload is not an object")
    return data


def _cell_text(cells: Sequence[Any], idx: int) -> str:
    if idx >= len(cells):
        return ""
    cell = cells[idx]
    if not isinstance(cell, dict):
        return ""
    value = cell.get("v")
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_json_table(payload: Dict[str, Any]) -> ParsedTable:
    if payload.get("status") == "error":
        errors = payload.get("errors") or []
        detail = "; ".join(
            str(e.get("detailed_message") or e.get("message") or e) if isinstance(e, dict) else str(e)
            for e in errors
            if e
        )
        raise LoadError(f"JSON table query failed: {detail or 'unknown error'}")

    table = payload.get("table")
    if not isinstance(table, dict) or not isinstance(table.get("cols"), list):
        raise LoadError("JSON table payload has no column list")

    labels = [(c.get("label") or "") if isinstance(c, dict) else "" for c in table["cols"]]
    columns = resolve_columns(labels)

    entries: List[CardMappingEntry] = []
    skipped = 0
    rows = table.get("rows") or []
    if not isinstance(rows, list):
        raise LoadError("JSON table payload has no row list")
    for row in rows:
        cells = row.get("c") if isinstance(row, dict) else None
        if not isinstance(cells, list):
            skipped += 1
            continue
        entries.append(CardMappingEntry(**{field: _cell_text(cells, idx) for field, idx in columns.items()}))

    return ParsedTable(tuple(entries), skipped)


# -------------------------------------------------------------------
# Embedded table
# -------------------------------------------------------------------

def _load_json(path: Path = DATA_PATH) -> Dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise LoadError(f"Embedded mapping file not found at: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data.get("cards"), list):
        raise LoadError("Embedded mapping must contain a 'cards' list.")
    return data


_EMBEDDED_CACHE: Optional[MappingSet] = None


def get_embedded_table() -> MappingSet:
    global _EMBEDDED_CACHE
    if _EMBEDDED_CACHE is None:
        data = _load_json()
        _EMBEDDED_CACHE = tuple(CardMappingEntry(**c) for c in data["cards"])
    return _EMBEDDED_CACHE


# -------------------------------------------------------------------
# Sources
# -------------------------------------------------------------------

async def fetch_text(url: str, *, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None) -> str:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.text
    except httpx.HTTPStatusError as e:
        raise LoadError(f"Mapping source returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise LoadError(f"Mapping source request failed: {e!r}") from e


class MappingSource(ABC):
    kind = "abstract"

    @abstractmethod
    async def load(self) -> MappingSet:
        """Acquire and parse the table. Raises LoadError."""

    def _report(self, parsed: ParsedTable) -> MappingSet:
        if parsed.skipped:
            log.info("%s source: skipped %d malformed rows", self.kind, parsed.skipped)
        log.info("%s source: loaded %d entries", self.kind, len(parsed.entries))
        return parsed.entries


class RemoteCsvSource(MappingSource):
    kind = "csv"

    def __init__(self, url: str, *, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def load(self) -> MappingSet:
        text = await fetch_text(self.url, timeout=self.timeout, transport=self.transport)
        return self._report(parse_csv_table(text))


class ProxiedJsonTableSource(MappingSource):
    """JSON table fetched through a cross-origin relay.

    `relay_url` is a template with a `{url}` placeholder; the target URL is
    percent-encoded into it. An empty template fetches the target directly.
    """

    kind = "json"

    def __init__(
        self,
        url: str,
        relay_url: str = "",
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.relay_url = relay_url
        self.timeout = timeout
        self.transport = transport

    @property
    def request_url(self) -> str:
        if not self.relay_url:
            return self.url
        return self.relay_url.format(url=quote(self.url, safe=""))

    async def load(self) -> MappingSet:
        text = await fetch_text(self.request_url, timeout=self.timeout, transport=self.transport)
        return self._report(parse_json_table(unwrap_payload(text)))


class EmbeddedSource(MappingSource):
    kind = "embedded"

    def __init__(self, entries: Optional[Sequence[CardMappingEntry]] = None):
        self.entries = tuple(entries) if entries is not None else None

    async def load(self) -> MappingSet:
        if self.entries is not None:
            return self.entries
        return get_embedded_table()


def build_source(settings: Settings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> MappingSource:
    kind = settings.mapping_source
    if kind == "csv":
        return RemoteCsvSource(settings.csv_url, timeout=settings.http_timeout, transport=transport)
    if kind == "json":
        if not settings.json_url:
            raise ValueError("MAPPING_JSON_URL is required when MAPPING_SOURCE=json")
        return ProxiedJsonTableSource(
            settings.json_url,
            settings.relay_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
    if kind == "embedded":
        return EmbeddedSource()
    raise ValueError(f"Unknown MAPPING_SOURCE: {kind!r}")
