from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from ..booking import BookingRequest, submit_booking

router = APIRouter(tags=["booking"])


@router.post("/booking")
async def booking(req: BookingRequest, request: Request) -> Dict[str, Any]:
    notifier = request.app.state.booking_notifier
    if not notifier.enabled:
        raise HTTPException(status_code=503, detail="Booking is not available right now")
    try:
        submit_booking(req, notifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True}
