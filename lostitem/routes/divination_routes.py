"""FastAPI routes for lost-item divination.

Endpoints:
- GET /mapping/meta
- POST /divination
- GET /divination/last
- POST /divination/feedback

Shared state (mapping cache, context slot, stores, notifier) lives on app.state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from ..errors import EmptyMappingError, LoadError
from ..feedback import export_filename, format_feedback_record, submit_feedback
from ..models import (
    DivinationRequest,
    DivinationResponse,
    FeedbackRequest,
    FeedbackResponse,
    InterpretationContext,
    MappingMeta,
)
from ..reading import compose_divination, render_interpretation

log = logging.getLogger("lostitem.routes.divination")
router = APIRouter(tags=["divination"])


def _divination_response(ctx: InterpretationContext) -> Dict[str, Any]:
    rendered = render_interpretation(ctx)
    return {
        "item_name": ctx.item_name,
        "notes": ctx.notes,
        "created_at": ctx.created_at,
        "cards": ctx.draw,
        "roles": rendered["roles"],
        "note_line": rendered["note_line"],
    }


@router.get("/mapping/meta", response_model=MappingMeta)
def mapping_meta(request: Request) -> MappingMeta:
    cache = request.app.state.mapping_cache
    return MappingMeta(source=cache.source.kind, loaded=cache.loaded, card_count=len(cache.mapping))


@router.post("/divination", response_model=DivinationResponse)
async def divination(req: DivinationRequest, request: Request):
    item_name = req.item_name.strip()
    if not item_name:
        raise HTTPException(status_code=400, detail="item_name required")

    cache = request.app.state.mapping_cache
    try:
        await cache.ensure_loaded()
        draw = cache.draw_three()
    except LoadError as e:
        log.warning("divination failed to load mapping: %s", e)
        raise HTTPException(status_code=503, detail="Could not load the card mapping. Please try again shortly.")
    except EmptyMappingError:
        raise HTTPException(status_code=503, detail="No cards are available right now. Please try again later.")

    ctx = compose_divination(item_name, req.notes.strip(), draw, slot=request.app.state.context_slot)
    log.info("divination item=%r cards=%s", ctx.item_name, [c.code for c in ctx.draw])
    return _divination_response(ctx)


@router.get("/divination/last", response_model=DivinationResponse)
def last_divination(request: Request):
    ctx = request.app.state.context_slot.current
    if ctx is None:
        raise HTTPException(status_code=404, detail="No divination yet")
    return _divination_response(ctx)


@router.post("/divination/feedback", response_model=FeedbackResponse)
async def divination_feedback(req: FeedbackRequest, request: Request):
    state = request.app.state
    outcome = submit_feedback(
        state.context_slot,
        state.feedback_store,
        req.status,
        req.note,
        notifier=state.notifier,
    )
    if not outcome.ok:
        return JSONResponse(status_code=409, content={"ok": False, "reason": outcome.reason})

    record = outcome.record or {}
    return FeedbackResponse(
        ok=True,
        record=record,
        export_text=format_feedback_record(record),
        export_filename=export_filename(record.get("item_name", "")),
    )
