"""Interpretation composer: drawn cards -> status / location / action roles."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .errors import EmptyMappingError
from .models import CardMappingEntry, InterpretationContext, RoleAssignment

ROLES = ("status", "location", "action")


class ContextSlot:
    """Holds the most recent divination; each new one replaces the last."""

    def __init__(self) -> None:
        self._current: Optional[InterpretationContext] = None

    @property
    def current(self) -> Optional[InterpretationContext]:
        return self._current

    def replace(self, ctx: InterpretationContext) -> None:
        self._current = ctx

    def clear(self) -> None:
        self._current = None


def assign_roles(draw: Sequence[CardMappingEntry]) -> RoleAssignment:
    # short draws reuse the first card for the missing roles
    if not draw:
        raise EmptyMappingError("Cannot assign roles from an empty draw")
    first = draw[0]
    return RoleAssignment(
        status=first,
        location=draw[1] if len(draw) > 1 else first,
        action=draw[2] if len(draw) > 2 else first,
    )


def compose_divination(
    item_name: str,
    notes: str,
    draw: Sequence[CardMappingEntry],
    *,
    slot: ContextSlot,
    now: Optional[datetime] = None,
) -> InterpretationContext:
    ctx = InterpretationContext(
        item_name=item_name,
        notes=notes,
        draw=list(draw),
        roles=assign_roles(draw),
        created_at=now or datetime.now(timezone.utc),
    )
    slot.replace(ctx)
    return ctx


def render_role(role: str, card: CardMappingEntry) -> Dict[str, Any]:
    if role == "status":
        text = f"Current state: {card.status_hint}"
    elif role == "location":
        text = f"{card.area_hint}\nLikely places: {card.location_hint}."
    elif role == "action":
        text = f"Search tip: {card.action_hint}"
    else:
        raise ValueError(f"Unknown role: {role}")

    return {
        "role": role,
        "card_code": card.code,
        "card_name": card.name,
        "text": text,
    }


def render_interpretation(ctx: InterpretationContext) -> Dict[str, Any]:
    """Compact object intended for API use: one text block per role plus the note line."""
    roles: List[Dict[str, Any]] = [render_role(role, getattr(ctx.roles, role)) for role in ROLES]

    note_line = None
    if ctx.notes:
        note_line = (
            f"Your note: \"{ctx.notes}\". Use it as the starting point for a first sweep; "
            "if nothing turns up, switch to another area and draw again."
        )

    return {"roles": roles, "note_line": note_line}
