"""Visitor comments kept in a local record store."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .storage import RecordStore

COMMENT_STORE_KEY = "tarot_comments"
DEFAULT_NAME = "Anonymous"


def list_comments(store: RecordStore) -> List[Dict[str, Any]]:
    """Newest first."""
    return list(reversed(store.load()))


def add_comment(
    store: RecordStore, name: str, title: str, text: str, now: Optional[datetime] = None
) -> Dict[str, Any]:
    text = (text or "").strip()
    if not text:
        raise ValueError("Comment text is required")
    comment = {
        "name": (name or "").strip() or DEFAULT_NAME,
        "title": (title or "").strip(),
        "text": text,
        "created_at": (now or datetime.now(timezone.utc)).isoformat(),
    }
    store.append(comment)
    return comment
