"""
Pagination Utility Module

Provides standardized limit/offset helpers for all list endpoints.
"""
from typing import TypeVar, List, Sequence

from fastapi import Query
from pydantic import BaseModel

from app.core.config import settings

T = TypeVar('T')


def clamp_limit(limit: int, maximum: int = settings.MAX_PAGE_LIMIT) -> int:
    """Cap page size to 1..maximum"""
    return max(1, min(maximum, limit))


class PaginationParams(BaseModel):
    """Standard pagination parameters"""
    limit: int = settings.DEFAULT_PAGE_LIMIT
    offset: int = 0

    def slice(self, items: Sequence[T]) -> List[T]:
        return paginate_list(items, self.offset, self.limit)


def paginate_list(items: Sequence[T], offset: int, limit: int) -> List[T]:
    """
    Apply offset/limit to an already merged and sorted list.

    Args:
        items: Full result list
        offset: Items to skip
        limit: Page size

    Returns:
        The requested window, possibly empty
    """
    offset = max(0, offset)
    return list(items[offset:offset + clamp_limit(limit)])


def pagination_params(default_limit: int = settings.DEFAULT_PAGE_LIMIT):
    """
    Build a FastAPI dependency that reads `limit` and `offset` query params.

    Out of range limits are clamped instead of rejected, matching how the
    list endpoints have always behaved.
    """
    def dependency(
        limit: int = Query(default_limit, description="Items per page"),
        offset: int = Query(0, ge=0, description="Items to skip"),
    ) -> PaginationParams:
        return PaginationParams(limit=clamp_limit(limit), offset=offset)

    return dependency
