"""Environment-driven settings.

Values come from the process environment; an optional `.env` in the working
directory is loaded first. A relative STORAGE_DIR is taken from the working
directory too.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

DEFAULT_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/2PACX-1vSICh3Kf0kiGIhFuR2cd324elPosc1FpSLUyr8Z7mSit6rhzOMgh3xoI7wKpsi"
    "-l9BtRwsb_GyXoyMA/pub?gid=0&single=true&output=csv"
)
DEFAULT_RELAY_URL = "https://api.allorigins.win/raw?url={url}"

SOURCE_KINDS = ("csv", "json", "embedded")

FEEDBACK_FIELDS = ("item", "location", "note", "status")
BOOKING_FIELDS = ("name", "contact", "topic", "mode", "message")


@dataclass
class Settings:
    mapping_source: str = "embedded"
    csv_url: str = DEFAULT_CSV_URL
    json_url: str = ""
    relay_url: str = DEFAULT_RELAY_URL
    http_timeout: float = 10.0
    storage_dir: Path = Path("data")
    feedback_form_url: str = ""
    feedback_fields: Dict[str, str] = field(default_factory=dict)
    booking_form_url: str = ""
    booking_fields: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_settings(env_file: Optional[Path] = None) -> Settings:
    load_dotenv(env_file or Path.cwd() / ".env")

    storage_dir = Path(os.getenv("STORAGE_DIR", "data"))
    if not storage_dir.is_absolute():
        storage_dir = Path.cwd() / storage_dir

    return Settings(
        mapping_source=(os.getenv("MAPPING_SOURCE") or "embedded").strip().lower(),
        csv_url=os.getenv("MAPPING_CSV_URL", DEFAULT_CSV_URL),
        json_url=os.getenv("MAPPING_JSON_URL", ""),
        relay_url=os.getenv("MAPPING_RELAY_URL", DEFAULT_RELAY_URL),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "10")),
        storage_dir=storage_dir,
        feedback_form_url=os.getenv("FEEDBACK_FORM_URL", ""),
        feedback_fields=_form_fields("FEEDBACK", FEEDBACK_FIELDS),
        booking_form_url=os.getenv("BOOKING_FORM_URL", ""),
        booking_fields=_form_fields("BOOKING", BOOKING_FIELDS),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_file=os.getenv("LOG_FILE") or None,
    )


def _form_fields(prefix: str, names) -> Dict[str, str]:
    """Field ids for an outbound form, e.g. FEEDBACK_FIELD_ITEM=entry.123."""
    fields = {}
    for name in names:
        value = os.getenv(f"{prefix}_FIELD_{name.upper()}")
        if value:
            fields[name] = value
    return fields
