"""
FakeSO Backend — Question Service
===================================

What:  Creating, listing and opening questions.
Why:   This is the consuming layer around the filter/sort engine: it loads
       questions from the database, hands them to the pure engine, and then
       applies the viewer-dependent visibility rules the engine knows nothing about.
Who:   Called by the question route handlers.

Listing Flow (GET /question/getQuestion):
    ┌──────────┐   ┌────────────┐   ┌──────────┐   ┌──────────┐   ┌────────────┐
    │  Load +  │──▶│  askedBy   │──▶│  Search  │──▶│ Friends  │──▶│ Visibility │
    │  Order   │   │  filter    │   │  filter  │   │ (order)  │   │  filter    │
    └──────────┘   └────────────┘   └──────────┘   └──────────┘   └────────────┘

Visibility Rule:
    A public question is visible to everyone. A private question is visible
    to its asker and to the asker's friends. Anonymous viewers (no
    username) see public questions only.

Failure Policy:
    Loading for a listing never raises: a failed or empty read yields an
    empty list and a logged warning. Creating and opening a question raise
    the usual application errors.
"""

import logging
from typing import List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.exceptions import DatabaseError, FakeSOError, NotFoundError, ValidationError
from fakeso.models.question import Question
from fakeso.models.user import User
from fakeso.schemas.question import QuestionInput, QuestionResponse
from fakeso.services.question_filters import (
    ORDER_TYPES,
    filter_questions_by_asked_by,
    filter_questions_by_search,
    sort_questions_by_order,
)
from fakeso.services.tag_service import tag_service

logger = logging.getLogger(__name__)


def is_visible_to(question: Question, viewer: Optional[str], viewer_friends: Set[str]) -> bool:
    """Whether `viewer` (None for anonymous) may see `question`."""
    if question.public:
        return True
    if viewer is None:
        return False
    return question.asked_by == viewer or question.asked_by in viewer_friends


class QuestionService:
    """
    Business logic for questions.

    Responsibilities:
        - add_question(): validate, resolve tags, persist
        - get_questions_by_order(): load everything and order it (never raises)
        - get_questions(): the full listing pipeline for one viewer
        - get_question_and_increment_views(): open a question, recording the viewer
    """

    async def add_question(self, db: AsyncSession, data: QuestionInput) -> QuestionResponse:
        """
        Raises:
            ValidationError: missing title, text, tags, askedBy or askDateTime,
                or a blank tag name
            DatabaseError: insert failed
        """
        if not (data.title and data.text and data.tags and data.asked_by and data.ask_date_time):
            raise ValidationError(message="Invalid question")
        if not all(tag.name and tag.name.strip() for tag in data.tags):
            raise ValidationError(message="Invalid question")

        tags = await tag_service.process_tags(db, data.tags)

        try:
            question = Question(
                title=data.title,
                text=data.text,
                asked_by=data.asked_by,
                ask_date_time=data.ask_date_time,
                public=data.public,
                views=[],
                up_votes=[],
                down_votes=[],
            )
            question.tags = tags
            question.answers = []
            question.comments = []
            db.add(question)
            await db.flush()
        except Exception as e:
            logger.error("Database error saving question: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error when saving a question",
                context={"error_type": type(e).__name__},
            )

        logger.info("Question %s created by %s (public=%s)", question.id, question.asked_by, question.public)
        return QuestionResponse.from_model(question)

    async def get_questions_by_order(self, db: AsyncSession, order: str) -> List[Question]:
        """
        Load all questions and arrange them by `order`.

        Returns an empty list instead of raising when the read fails.
        An unknown `order` is still a ValidationError, checked before the
        read so an empty database rejects it too.
        """
        if order not in ORDER_TYPES:
            raise ValidationError(
                message=f"Unknown order '{order}'. Must be one of: {', '.join(ORDER_TYPES)}",
                field="order",
            )

        try:
            result = await db.execute(select(Question))
            questions: Sequence[Question] = result.scalars().all()
        except Exception as e:
            logger.warning("Could not load questions for order '%s': %s", order, str(e))
            return []

        if not questions:
            return []
        return sort_questions_by_order(questions, order)

    async def _friends_of(self, db: AsyncSession, username: Optional[str]) -> Set[str]:
        """Friend usernames of `username`; empty for anonymous or unknown viewers."""
        if not username:
            return set()
        try:
            result = await db.execute(select(User).where(User.username == username))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error loading viewer %s: %s", username, str(e))
            raise DatabaseError(message="Could not retrieve questions. Please try again.")
        return set(user.friends) if user else set()

    async def get_questions(
        self,
        db: AsyncSession,
        order: str = "newest",
        search: str = "",
        asked_by: Optional[str] = None,
        viewer: Optional[str] = None,
    ) -> List[QuestionResponse]:
        """
        Run the full listing pipeline for one viewer.

        For order "friends" only questions asked by the viewer's friends are
        kept (in stored order); every order then drops private questions the
        viewer is not allowed to see. Answers and comments are returned as
        references; opening the question gives them inline.
        """
        questions = await self.get_questions_by_order(db, order)
        if asked_by:
            questions = filter_questions_by_asked_by(questions, asked_by)
        questions = filter_questions_by_search(questions, search)

        friends = await self._friends_of(db, viewer)
        if order == "friends":
            questions = [q for q in questions if q.asked_by in friends]

        visible = [q for q in questions if is_visible_to(q, viewer or None, friends)]
        return [QuestionResponse.from_model(q, populate=False) for q in visible]

    async def get_question_and_increment_views(
        self,
        db: AsyncSession,
        question_id: UUID,
        username: Optional[str] = None,
    ) -> QuestionResponse:
        """
        Fetch one question and add `username` to its viewers.

        Views are a set: opening the same question twice counts once.
        A private question the viewer may not see is reported as not found,
        so its existence is not leaked.

        Raises:
            NotFoundError: no such question, or not visible to `username`
            DatabaseError: read or update failed
        """
        try:
            result = await db.execute(
                select(Question).where(Question.id == question_id).with_for_update()
            )
            question = result.scalar_one_or_none()
            if question is None:
                raise NotFoundError(resource="question", resource_id=str(question_id))

            friends = await self._friends_of(db, username)
            if not is_visible_to(question, username or None, friends):
                raise NotFoundError(resource="question", resource_id=str(question_id))

            if username and username not in question.views:
                question.views = [*question.views, username]
                await db.flush()

            return QuestionResponse.from_model(question)

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error opening question %s: %s", question_id, str(e))
            raise DatabaseError(
                message="Error when fetching and updating a question",
                context={"question_id": str(question_id)},
            )


question_service = QuestionService()
