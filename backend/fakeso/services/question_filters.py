"""
FakeSO Backend — Question Filter/Sort Engine
==============================================

What:  Pure functions that search, narrow and order a list of questions.
Why:   Ordering and search are the logic-heavy part of the question listing;
       keeping them free of I/O means they are tested with plain objects.
Who:   Called by QuestionService after it has loaded questions from the DB.

Search Syntax:
    "[react] [javascript] storage website"
     └─tag──┘ └───tag────┘ └──keywords──┘

    A question matches if ANY bracket tag equals one of its tag names, OR
    ANY keyword occurs in its title or text. Both comparisons ignore case.
    An empty search string matches everything.

Orderings (all stable: equal keys keep their input order):
    newest      askDateTime, newest first
    unanswered  only questions without answers, newest first
    active      latest answer time (askDateTime if unanswered), newest first
    mostViewed  number of distinct viewers, highest first
    friends     input order unchanged; QuestionService narrows to friends

This module never checks visibility (public/private). That is the
consuming layer's job, because it depends on who is looking.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Sequence

from fakeso.exceptions import ValidationError
from fakeso.models.question import Question

ORDER_TYPES = ("newest", "unanswered", "active", "mostViewed", "friends")

_TAG_PATTERN = re.compile(r"\[([^\]]+)\]")
_WORD_PATTERN = re.compile(r"\b\w+\b")


def parse_tags(search: str) -> List[str]:
    """Lower-cased names inside [brackets], in the order they appear."""
    return [name.strip().lower() for name in _TAG_PATTERN.findall(search or "")]


def parse_keywords(search: str) -> List[str]:
    """Lower-cased free words, with bracket tokens removed first."""
    without_tags = _TAG_PATTERN.sub(" ", search or "")
    return [word.lower() for word in _WORD_PATTERN.findall(without_tags)]


def _has_tag(question: Question, tag_names: Iterable[str]) -> bool:
    own = {tag.name.lower() for tag in question.tags}
    return any(name in own for name in tag_names)


def _has_keyword(question: Question, keywords: Iterable[str]) -> bool:
    title = question.title.lower()
    text = question.text.lower()
    return any(word in title or word in text for word in keywords)


def filter_questions_by_search(questions: Sequence[Question], search: str) -> List[Question]:
    """
    Keep questions matching any bracket tag or any keyword in `search`.

    Returns a new list in the input order. An empty input is always an
    empty result, even for an empty search string.
    """
    if not questions:
        return []

    tag_names = parse_tags(search)
    keywords = parse_keywords(search)
    if not tag_names and not keywords:
        return list(questions)

    return [
        q for q in questions
        if _has_tag(q, tag_names) or _has_keyword(q, keywords)
    ]


def filter_questions_by_asked_by(questions: Sequence[Question], asked_by: str) -> List[Question]:
    """Keep questions whose asker is exactly `asked_by`."""
    return [q for q in questions if q.asked_by == asked_by]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC so they
    # compare with the aware ones created in Python
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def activity_time(question: Question) -> datetime:
    """Most recent answer time, or the ask time when there are no answers."""
    return max(
        (_as_utc(answer.ans_date_time) for answer in question.answers),
        default=_as_utc(question.ask_date_time),
    )


def sort_questions_by_order(questions: Sequence[Question], order: str) -> List[Question]:
    """
    Return `questions` arranged by one of the ORDER_TYPES.

    Raises:
        ValidationError: `order` is not a known ordering
    """
    if order == "newest":
        return sorted(questions, key=lambda q: _as_utc(q.ask_date_time), reverse=True)
    if order == "unanswered":
        return [q for q in sort_questions_by_order(questions, "newest") if not q.answers]
    if order == "active":
        return sorted(questions, key=activity_time, reverse=True)
    if order == "mostViewed":
        return sorted(questions, key=lambda q: len(q.views), reverse=True)
    if order == "friends":
        return list(questions)
    raise ValidationError(
        message=f"Unknown order '{order}'. Must be one of: {', '.join(ORDER_TYPES)}",
        field="order",
    )
