"""
FakeSO Backend — Vote Service
===============================

What:  Toggles a user's up/down vote on a question.
Who:   Called by the upvote/downvote route handlers.

Toggle Rules (for direction = upvote; downvote is the mirror image):
    ┌─────────────────────────┬──────────────────────────┬──────────────────────────────┐
    │ user currently in       │ effect                   │ message                      │
    ├─────────────────────────┼──────────────────────────┼──────────────────────────────┤
    │ upVotes                 │ removed from upVotes     │ Upvote cancelled successfully│
    │ downVotes               │ moved to upVotes         │ Question upvoted successfully│
    │ neither                 │ added to upVotes         │ Question upvoted successfully│
    └─────────────────────────┴──────────────────────────┴──────────────────────────────┘

A username is never in both lists after a vote. The row is read
FOR UPDATE so two concurrent votes on one question serialize.
"""

import logging
from typing import Dict, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.exceptions import DatabaseError, FakeSOError, NotFoundError, ValidationError
from fakeso.models.question import Question
from fakeso.schemas.question import VoteResponse

logger = logging.getLogger(__name__)

# direction -> (message on add, message on cancel)
VOTE_MESSAGES: Dict[str, Tuple[str, str]] = {
    "upvote": ("Question upvoted successfully", "Upvote cancelled successfully"),
    "downvote": ("Question downvoted successfully", "Downvote cancelled successfully"),
}


class VoteService:
    """Up/down vote toggling for questions."""

    async def vote(
        self,
        db: AsyncSession,
        question_id: UUID,
        username: str,
        direction: str,
    ) -> VoteResponse:
        """
        Apply one vote toggle.

        Raises:
            ValidationError: unknown direction or empty username
            NotFoundError: no question with this ID
            DatabaseError: the update failed
        """
        if direction not in VOTE_MESSAGES:
            raise ValidationError(message=f"Unknown vote direction '{direction}'", field="direction")
        if not username:
            raise ValidationError(message="Username is required", field="username")

        added_msg, cancelled_msg = VOTE_MESSAGES[direction]

        try:
            result = await db.execute(
                select(Question).where(Question.id == question_id).with_for_update()
            )
            question = result.scalar_one_or_none()
            if question is None:
                raise NotFoundError(resource="question", resource_id=str(question_id), message="Question not found!")

            up_votes = list(question.up_votes)
            down_votes = list(question.down_votes)
            target, opposite = (up_votes, down_votes) if direction == "upvote" else (down_votes, up_votes)

            if username in target:
                target.remove(username)
                msg = cancelled_msg
            else:
                target.append(username)
                if username in opposite:
                    opposite.remove(username)
                msg = added_msg

            # New list objects so the JSON columns are flagged dirty
            question.up_votes = up_votes
            question.down_votes = down_votes
            await db.flush()

            logger.info("%s on question %s by %s: %s", direction, question_id, username, msg)
            return VoteResponse(msg=msg, up_votes=up_votes, down_votes=down_votes)

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error applying %s to %s: %s", direction, question_id, str(e))
            raise DatabaseError(
                message=f"Error when adding {direction} to question",
                context={"question_id": str(question_id), "error_type": type(e).__name__},
            )


vote_service = VoteService()
