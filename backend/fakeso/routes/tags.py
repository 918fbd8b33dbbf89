"""
FakeSO Backend — Tag Route Handlers
=====================================

What:  Read-only tag endpoints for the tag page and tag links.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.database import get_db_session
from fakeso.schemas.common import ErrorResponse
from fakeso.schemas.question import TagCount, TagResponse
from fakeso.services.tag_service import tag_service

router = APIRouter(prefix="/tag", tags=["Tags"])


@router.get(
    "/getTagsWithQuestionNumber",
    response_model=List[TagCount],
    summary="Every tag with its question count",
)
async def get_tags_with_question_number(
    db: AsyncSession = Depends(get_db_session),
) -> List[TagCount]:
    return await tag_service.get_tag_count_map(db)


@router.get(
    "/getTagByName/{name}",
    response_model=TagResponse,
    responses={404: {"description": "Tag not found", "model": ErrorResponse}},
    summary="Look up a tag by name (case-insensitive)",
)
async def get_tag_by_name(
    name: str,
    db: AsyncSession = Depends(get_db_session),
) -> TagResponse:
    return await tag_service.get_tag_by_name(db, name)
