"""
FakeSO Backend — Question Route Handlers
==========================================

What:  /question/* endpoints: ask, list, open, upvote, downvote.
Who:   Called by the frontend question list and question page.

Real-time events published here:
    questionUpdate  after a question is created
    viewsUpdate     after a question is opened
    voteUpdate      after every vote toggle
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.database import get_db_session
from fakeso.schemas.common import ErrorResponse
from fakeso.schemas.question import (
    QuestionInput,
    QuestionResponse,
    VoteRequest,
    VoteResponse,
    VoteUpdatePayload,
)
from fakeso.services.event_bus import QUESTION_UPDATE, VIEWS_UPDATE, VOTE_UPDATE, event_bus
from fakeso.services.question_service import question_service
from fakeso.services.vote_service import vote_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/question", tags=["Questions"])


@router.post(
    "/addQuestion",
    response_model=QuestionResponse,
    responses={
        400: {"description": "Missing title, text, tags, askedBy or askDateTime", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Ask a new question",
)
async def add_question(
    body: QuestionInput,
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    question = await question_service.add_question(db, body)
    await event_bus.publish(QUESTION_UPDATE, question)
    return question


@router.get(
    "/getQuestion",
    response_model=List[QuestionResponse],
    responses={
        400: {"description": "Unknown order", "model": ErrorResponse},
    },
    summary="List questions",
    description=(
        "Orders all questions, then narrows them by asker and search string, "
        "and finally hides private questions the viewer may not see."
    ),
)
async def get_questions(
    order: str = Query(
        default="newest",
        description="One of: newest, unanswered, active, mostViewed, friends",
    ),
    search: str = Query(
        default="",
        description="Free keywords and [tag] tokens, e.g. '[react] storage'",
    ),
    asked_by: Optional[str] = Query(default=None, alias="askedBy"),
    viewer: Optional[str] = Query(
        default=None,
        description="Username of the person looking; omit for anonymous",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[QuestionResponse]:
    return await question_service.get_questions(
        db, order=order, search=search, asked_by=asked_by, viewer=viewer,
    )


@router.get(
    "/getQuestionById/{qid}",
    response_model=QuestionResponse,
    responses={
        404: {"description": "Question not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Open a question and record the view",
)
async def get_question_by_id(
    qid: UUID,
    username: Optional[str] = Query(default=None, description="Viewer to add to the views set"),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    question = await question_service.get_question_and_increment_views(db, qid, username)
    await event_bus.publish(VIEWS_UPDATE, question)
    return question


async def _vote(db: AsyncSession, body: VoteRequest, direction: str) -> VoteResponse:
    result = await vote_service.vote(db, body.qid, body.username, direction)
    await event_bus.publish(
        VOTE_UPDATE,
        VoteUpdatePayload(qid=body.qid, up_votes=result.up_votes, down_votes=result.down_votes),
    )
    return result


@router.post(
    "/upvoteQuestion",
    response_model=VoteResponse,
    responses={404: {"description": "Question not found", "model": ErrorResponse}},
    summary="Toggle an upvote",
)
async def upvote_question(
    body: VoteRequest,
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await _vote(db, body, "upvote")


@router.post(
    "/downvoteQuestion",
    response_model=VoteResponse,
    responses={404: {"description": "Question not found", "model": ErrorResponse}},
    summary="Toggle a downvote",
)
async def downvote_question(
    body: VoteRequest,
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await _vote(db, body, "downvote")
