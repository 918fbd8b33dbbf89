"""
FakeSO Backend — Tag Service (Tag Resolver)
=============================================

What:  Turns tag names submitted with a question into Tag rows, creating
       the ones that do not exist yet, and reports per-tag question counts.
Who:   Called by QuestionService.add_question and the tag routes.

Deduplication:
    Tag names are unique case-insensitively: "React" resolves to an
    existing "react" row. The first spelling ever submitted is the one
    stored. Within one submission, repeated names resolve to the same row.
"""

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.exceptions import DatabaseError, NotFoundError, ValidationError
from fakeso.models.question import Question, Tag
from fakeso.schemas.question import TagCount, TagInput, TagResponse

logger = logging.getLogger(__name__)


class TagService:
    """Get-or-create tags by name and aggregate tag usage."""

    async def add_tag(self, db: AsyncSession, tag: TagInput) -> Tag:
        """
        Return the existing tag with this name, or create it.

        Raises:
            ValidationError: blank tag name
            DatabaseError: lookup or insert failed
        """
        name = (tag.name or "").strip()
        if not name:
            raise ValidationError(message="Tag name is required", field="name")

        try:
            result = await db.execute(
                select(Tag).where(func.lower(Tag.name) == name.lower())
            )
            existing = result.scalar_one_or_none()
            if existing is not None:
                return existing

            created = Tag(name=name, description=tag.description or "")
            db.add(created)
            await db.flush()
            logger.info("Created tag '%s'", name)
            return created
        except Exception as e:
            logger.error("Database error resolving tag '%s': %s", name, str(e))
            raise DatabaseError(
                message="Could not save the tag. Please try again.",
                context={"tag": name, "error_type": type(e).__name__},
            )

    async def process_tags(self, db: AsyncSession, tags: Sequence[TagInput]) -> List[Tag]:
        """Resolve each submitted tag, dropping repeats while keeping first-seen order."""
        resolved: List[Tag] = []
        seen = set()
        for tag in tags:
            row = await self.add_tag(db, tag)
            if row.id not in seen:
                seen.add(row.id)
                resolved.append(row)
        return resolved

    async def get_tag_by_name(self, db: AsyncSession, name: str) -> TagResponse:
        """
        Raises:
            NotFoundError: no tag with that name
        """
        try:
            result = await db.execute(
                select(Tag).where(func.lower(Tag.name) == name.strip().lower())
            )
            tag: Optional[Tag] = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching tag '%s': %s", name, str(e))
            raise DatabaseError(message="Could not retrieve the tag. Please try again.")

        if tag is None:
            raise NotFoundError(resource="tag", message=f"Tag '{name}' was not found")
        return TagResponse.from_model(tag)

    async def get_tag_count_map(self, db: AsyncSession) -> List[TagCount]:
        """
        Every tag with the number of questions that carry it.

        Tags no question uses are included with a count of 0, sorted
        by name so the tag page is stable between reloads.
        """
        try:
            tags = (await db.execute(select(Tag).order_by(Tag.name))).scalars().all()
            questions = (await db.execute(select(Question))).scalars().all()
        except Exception as e:
            logger.error("Database error building tag counts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve tags. Please try again.",
                context={"error_type": type(e).__name__},
            )

        counts: Dict[str, int] = {tag.name: 0 for tag in tags}
        for question in questions:
            for tag in question.tags:
                counts[tag.name] = counts.get(tag.name, 0) + 1

        return [TagCount(name=name, qcnt=count) for name, count in counts.items()]


# Why singleton: stateless; sessions are passed per call
tag_service = TagService()
