"""
FakeSO Backend — Answer and Comment Attachment
================================================

What:  Validates new answers and comments and appends them to their parent.
Who:   Called by the answer and comment route handlers.

Parents:
    answer  → always a question
    comment → a question or an answer, chosen by `parent_type`

Order:
    1. Validate the payload (text, author, timestamp all present)
    2. Resolve the parent (NotFoundError if missing)
    3. Append to the parent's ordered list and flush

Nothing is written when validation fails, so an invalid comment never
leaves an orphan row behind.
"""

import logging
from typing import Tuple, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.exceptions import DatabaseError, FakeSOError, NotFoundError, ValidationError
from fakeso.models.question import Answer, Comment, Question
from fakeso.schemas.question import (
    AnswerInput,
    AnswerResponse,
    CommentInput,
    CommentResponse,
    QuestionResponse,
)

logger = logging.getLogger(__name__)

PARENT_TYPES = ("question", "answer")


def is_valid_answer(answer: AnswerInput) -> bool:
    return bool(answer.text and answer.ans_by and answer.ans_date_time)


def is_valid_comment(comment: CommentInput) -> bool:
    return bool(comment.text and comment.comment_by and comment.comment_date_time)


class AttachmentService:
    """Appends answers to questions and comments to questions or answers."""

    async def add_answer(
        self,
        db: AsyncSession,
        question_id: UUID,
        data: AnswerInput,
    ) -> AnswerResponse:
        """
        Raises:
            ValidationError: "Invalid answer"
            NotFoundError: the question does not exist
            DatabaseError: the write failed
        """
        if not is_valid_answer(data):
            raise ValidationError(message="Invalid answer")

        try:
            result = await db.execute(
                select(Question).where(Question.id == question_id).with_for_update()
            )
            question = result.scalar_one_or_none()
            if question is None:
                raise NotFoundError(resource="question", resource_id=str(question_id))

            answer = Answer(
                text=data.text,
                ans_by=data.ans_by,
                ans_date_time=data.ans_date_time,
                comments=[],
            )
            question.answers.append(answer)
            await db.flush()

            logger.info("Answer %s added to question %s by %s", answer.id, question_id, answer.ans_by)
            return AnswerResponse.from_model(answer)

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error adding answer to %s: %s", question_id, str(e))
            raise DatabaseError(
                message="Error when adding answer",
                context={"question_id": str(question_id), "error_type": type(e).__name__},
            )

    async def add_comment(
        self,
        db: AsyncSession,
        parent_id: UUID,
        parent_type: str,
        data: CommentInput,
    ) -> Tuple[CommentResponse, Union[QuestionResponse, AnswerResponse]]:
        """
        Attach a comment and return it together with the updated parent.

        Raises:
            ValidationError: "Invalid comment", or an unknown parent type
            NotFoundError: the parent does not exist
            DatabaseError: the write failed
        """
        if parent_type not in PARENT_TYPES:
            raise ValidationError(message="Invalid comment type", field="type")
        if not is_valid_comment(data):
            raise ValidationError(message="Invalid comment")

        model = Question if parent_type == "question" else Answer

        try:
            result = await db.execute(
                select(model).where(model.id == parent_id).with_for_update()
            )
            parent = result.scalar_one_or_none()
            if parent is None:
                raise NotFoundError(resource=parent_type, resource_id=str(parent_id))

            comment = Comment(
                text=data.text,
                comment_by=data.comment_by,
                comment_date_time=data.comment_date_time,
            )
            parent.comments.append(comment)
            await db.flush()

            logger.info("Comment %s added to %s %s", comment.id, parent_type, parent_id)
            if parent_type == "question":
                updated = QuestionResponse.from_model(parent)
            else:
                updated = AnswerResponse.from_model(parent)
            return CommentResponse.from_model(comment), updated

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error adding comment to %s %s: %s", parent_type, parent_id, str(e))
            raise DatabaseError(
                message="Error when adding comment",
                context={"parent_id": str(parent_id), "error_type": type(e).__name__},
            )


attachment_service = AttachmentService()
