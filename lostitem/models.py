from datetime import datetime
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ResultStatus = Literal["found", "not_found"]


class CardMappingEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = ""
    name: str = ""
    status_hint: str = ""
    location_hint: str = ""
    area_hint: str = ""
    action_hint: str = ""


# Built once per session, never mutated afterwards.
MappingSet = Tuple[CardMappingEntry, ...]


class RoleAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: CardMappingEntry
    location: CardMappingEntry
    action: CardMappingEntry


class InterpretationContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_name: str
    notes: str = ""
    draw: List[CardMappingEntry]
    roles: RoleAssignment
    created_at: datetime


class DivinationRequest(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    notes: str = Field("", max_length=2000)


class RoleNote(BaseModel):
    role: str
    card_code: str
    card_name: str
    text: str


class DivinationResponse(BaseModel):
    item_name: str
    notes: str
    created_at: datetime
    cards: List[CardMappingEntry]
    roles: List[RoleNote]
    note_line: Optional[str] = None


class FeedbackRequest(BaseModel):
    status: ResultStatus
    note: str = Field("", max_length=2000)


class FeedbackResponse(BaseModel):
    ok: bool
    reason: Optional[str] = None
    record: Optional[dict] = None
    export_text: Optional[str] = None
    export_filename: Optional[str] = None


class CommentRequest(BaseModel):
    name: str = Field("", max_length=100)
    title: str = Field("", max_length=200)
    text: str = Field(..., min_length=1, max_length=2000)


class MappingMeta(BaseModel):
    source: str
    loaded: bool
    card_count: int
