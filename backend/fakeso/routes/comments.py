"""
FakeSO Backend — Comment Route Handler
========================================

What:  POST /comment/addComment on a question or an answer.
How:   Returns the new comment; publishes `commentUpdate` carrying the
       whole updated parent so open pages can re-render it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.database import get_db_session
from fakeso.schemas.common import ErrorResponse
from fakeso.schemas.question import CommentRequest, CommentResponse, CommentUpdatePayload
from fakeso.services.attachment_service import attachment_service
from fakeso.services.event_bus import COMMENT_UPDATE, event_bus

router = APIRouter(prefix="/comment", tags=["Comments"])


@router.post(
    "/addComment",
    response_model=CommentResponse,
    responses={
        400: {"description": "Invalid comment", "model": ErrorResponse},
        404: {"description": "Question or answer not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Comment on a question or answer",
)
async def add_comment(
    body: CommentRequest,
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    comment, parent = await attachment_service.add_comment(db, body.id, body.type, body.comment)
    await event_bus.publish(COMMENT_UPDATE, CommentUpdatePayload(result=parent, type=body.type))
    return comment
