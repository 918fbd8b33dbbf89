"""
FakeSO Backend — Question, Answer, Comment and Tag Schemas
============================================================

What:  Request bodies, response models and real-time payloads for Q&A content.

Reference vs. Inline:
    An answer or comment inside a question can be sent either as a bare
    reference ({"kind": "ref", "id": ...}) or as the full entity
    ({"kind": "inline", ...}). The `kind` discriminator makes the choice
    explicit for the client instead of leaving it to guess from the shape.
    Services decide which to emit via the `populate` flag of `from_model`:
    the question listing sends references, opening a question sends
    everything inline.

Input models declare every field Optional on purpose: the services check
required fields themselves and raise ValidationError (400) with the
message the client expects, rather than FastAPI's generic 422.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field

from fakeso.models.question import Answer, Comment, Question, Tag
from fakeso.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Tags
# ══════════════════════════════════════════════════════════════════════════


class TagInput(CamelModel):
    name: Optional[str] = None
    description: str = ""


class TagResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: str

    @classmethod
    def from_model(cls, tag: Tag) -> "TagResponse":
        return cls(id=tag.id, name=tag.name, description=tag.description)


class TagCount(CamelModel):
    """A tag name with the number of questions carrying it."""
    name: str
    qcnt: int


# ══════════════════════════════════════════════════════════════════════════
# Comments
# ══════════════════════════════════════════════════════════════════════════


class CommentInput(CamelModel):
    text: Optional[str] = None
    comment_by: Optional[str] = None
    comment_date_time: Optional[datetime] = None


class CommentRef(CamelModel):
    kind: Literal["ref"] = "ref"
    id: uuid.UUID


class CommentResponse(CamelModel):
    kind: Literal["inline"] = "inline"
    id: uuid.UUID
    text: str
    comment_by: str
    comment_date_time: datetime

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            text=comment.text,
            comment_by=comment.comment_by,
            comment_date_time=comment.comment_date_time,
        )


CommentItem = Annotated[Union[CommentRef, CommentResponse], Field(discriminator="kind")]


def _comment_items(comments: List[Comment], populate: bool) -> List[Union[CommentRef, CommentResponse]]:
    if populate:
        return [CommentResponse.from_model(c) for c in comments]
    return [CommentRef(id=c.id) for c in comments]


# ══════════════════════════════════════════════════════════════════════════
# Answers
# ══════════════════════════════════════════════════════════════════════════


class AnswerInput(CamelModel):
    text: Optional[str] = None
    ans_by: Optional[str] = None
    ans_date_time: Optional[datetime] = None


class AnswerRef(CamelModel):
    kind: Literal["ref"] = "ref"
    id: uuid.UUID


class AnswerResponse(CamelModel):
    kind: Literal["inline"] = "inline"
    id: uuid.UUID
    text: str
    ans_by: str
    ans_date_time: datetime
    comments: List[CommentItem] = Field(default_factory=list)

    @classmethod
    def from_model(cls, answer: Answer, populate: bool = True) -> "AnswerResponse":
        return cls(
            id=answer.id,
            text=answer.text,
            ans_by=answer.ans_by,
            ans_date_time=answer.ans_date_time,
            comments=_comment_items(answer.comments, populate),
        )


AnswerItem = Annotated[Union[AnswerRef, AnswerResponse], Field(discriminator="kind")]


# ══════════════════════════════════════════════════════════════════════════
# Questions
# ══════════════════════════════════════════════════════════════════════════


class QuestionInput(CamelModel):
    title: Optional[str] = None
    text: Optional[str] = None
    tags: List[TagInput] = Field(default_factory=list)
    asked_by: Optional[str] = None
    ask_date_time: Optional[datetime] = None
    public: bool = True


class QuestionResponse(CamelModel):
    """
    Full question document.

    With populate=True (the default for reads) answers and their comments
    are inline; with populate=False answers and comments go out as
    references, which is what the listing uses since it only shows counts.
    """
    id: uuid.UUID
    title: str
    text: str
    tags: List[TagResponse]
    asked_by: str
    ask_date_time: datetime
    answers: List[AnswerItem]
    views: List[str]
    up_votes: List[str]
    down_votes: List[str]
    comments: List[CommentItem]
    public: bool

    @classmethod
    def from_model(cls, question: Question, populate: bool = True) -> "QuestionResponse":
        if populate:
            answers = [AnswerResponse.from_model(a) for a in question.answers]
        else:
            answers = [AnswerRef(id=a.id) for a in question.answers]
        return cls(
            id=question.id,
            title=question.title,
            text=question.text,
            tags=[TagResponse.from_model(t) for t in question.tags],
            asked_by=question.asked_by,
            ask_date_time=question.ask_date_time,
            answers=answers,
            views=list(question.views),
            up_votes=list(question.up_votes),
            down_votes=list(question.down_votes),
            comments=_comment_items(question.comments, populate),
            public=question.public,
        )


# ══════════════════════════════════════════════════════════════════════════
# Request bodies
# ══════════════════════════════════════════════════════════════════════════


class VoteRequest(CamelModel):
    qid: uuid.UUID
    username: str = Field(min_length=1)


class AnswerRequest(CamelModel):
    qid: uuid.UUID
    ans: AnswerInput


class CommentRequest(CamelModel):
    id: uuid.UUID
    type: Literal["question", "answer"]
    comment: CommentInput


# ══════════════════════════════════════════════════════════════════════════
# Results and real-time payloads
# ══════════════════════════════════════════════════════════════════════════


class VoteResponse(CamelModel):
    """Result of a vote toggle: the status message plus both vote sets."""
    msg: str
    up_votes: List[str]
    down_votes: List[str]


class VoteUpdatePayload(CamelModel):
    qid: uuid.UUID
    up_votes: List[str]
    down_votes: List[str]


class AnswerUpdatePayload(CamelModel):
    qid: uuid.UUID
    answer: AnswerResponse


class CommentUpdatePayload(CamelModel):
    result: Union[QuestionResponse, AnswerResponse]
    type: Literal["question", "answer"]
