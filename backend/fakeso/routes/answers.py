"""
FakeSO Backend — Answer Route Handler
=======================================

What:  POST /answer/addAnswer, publishes `answerUpdate` on success.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.database import get_db_session
from fakeso.schemas.common import ErrorResponse
from fakeso.schemas.question import AnswerRequest, AnswerResponse, AnswerUpdatePayload
from fakeso.services.attachment_service import attachment_service
from fakeso.services.event_bus import ANSWER_UPDATE, event_bus

router = APIRouter(prefix="/answer", tags=["Answers"])


@router.post(
    "/addAnswer",
    response_model=AnswerResponse,
    responses={
        400: {"description": "Invalid answer", "model": ErrorResponse},
        404: {"description": "Question not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Answer a question",
)
async def add_answer(
    body: AnswerRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AnswerResponse:
    answer = await attachment_service.add_answer(db, body.qid, body.ans)
    await event_bus.publish(ANSWER_UPDATE, AnswerUpdatePayload(qid=body.qid, answer=answer))
    return answer
