"""
FakeSO Backend — Question, Answer, Comment and Tag Models
===========================================================

What:  ORM models for the Q&A content tables.
Why:   Maps Python objects to database rows for type-safe database operations.
Who:   Used by the tag, question, vote and attachment services.

Table Design Rationale:
    - UUID primary keys generated in Python (portable across PostgreSQL and SQLite)
    - views / up_votes / down_votes: JSON arrays of usernames, treated as sets.
      They are always reassigned, never mutated in place, so SQLAlchemy sees
      the change without MutableList tracking.
    - answers / comments: ordered child rows with an explicit `position`
      column maintained by `ordering_list`, so appends keep insertion order.
    - A comment belongs to exactly one parent: either a question or an answer.

Relationships are loaded with `selectin` because the async session cannot
lazy-load on attribute access; every question read needs its tags and
answers anyway (search and "active" ordering look at both).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fakeso.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Many-to-many: a question references tags, tags are shared between questions
question_tags = Table(
    "question_tags",
    Base.metadata,
    Column("question_id", Uuid, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """A keyword attached to questions. Names are unique case-insensitively."""

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}')>"


class Comment(Base):
    """
    A comment on either a question or an answer.

    Exactly one of question_id / answer_id is set. `position` is the
    comment's index within its parent's comment list.
    """

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    comment_by: Mapped[str] = mapped_column(String(100), nullable=False)
    comment_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    question_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=True
    )
    answer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("answers.id", ondelete="CASCADE"), nullable=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, by='{self.comment_by}')>"


class Answer(Base):
    """An answer to a question, with its own ordered comments."""

    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    ans_by: Mapped[str] = mapped_column(String(100), nullable=False)
    ans_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    question_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    comments: Mapped[List[Comment]] = relationship(
        Comment,
        primaryjoin="Answer.id == Comment.answer_id",
        order_by=Comment.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Answer(id={self.id}, by='{self.ans_by}')>"


class Question(Base):
    """
    A question posted by a user.

    Lifecycle:
        1. Created with empty answers, comments, views and votes
        2. Views grow as distinct users open the question
        3. Answers and comments are appended, never reordered
        4. Votes toggle per user between up, down and neither

    `public=False` restricts visibility to the asker and the asker's friends.
    """

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    asked_by: Mapped[str] = mapped_column(String(100), nullable=False)
    ask_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    views: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    up_votes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    down_votes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    tags: Mapped[List[Tag]] = relationship(Tag, secondary=question_tags, lazy="selectin")
    answers: Mapped[List[Answer]] = relationship(
        Answer,
        order_by=Answer.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    comments: Mapped[List[Comment]] = relationship(
        Comment,
        primaryjoin="Question.id == Comment.question_id",
        order_by=Comment.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_questions_asked_by", "asked_by"),
        Index("idx_questions_ask_date_time", "ask_date_time"),
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, title='{self.title[:30]}')>"
