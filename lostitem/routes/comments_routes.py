from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from ..comments import add_comment, list_comments
from ..models import CommentRequest

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("")
def comments(request: Request) -> Dict[str, Any]:
    return {"comments": list_comments(request.app.state.comment_store)}


@router.post("")
def post_comment(req: CommentRequest, request: Request) -> Dict[str, Any]:
    try:
        comment = add_comment(request.app.state.comment_store, req.name, req.title, req.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"comment": comment}
