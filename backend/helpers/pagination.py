"""
Page/limit pagination shared by every list endpoint.

Pages are 1-based. Limits above the configured maximum are clamped rather
than rejected, so `?limit=500` behaves like `?limit=50`.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query

from models.config import settings

PageQuery = Annotated[int, Query(ge=1, description="1-based page number")]
LimitQuery = Annotated[
    int | None, Query(ge=1, description="Items per page (clamped to the maximum)")
]


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def clamp_limit(limit: int | None) -> int:
    """
    Clamp a requested page size into [1, PAGINATION_MAX_LIMIT].

    Args:
        limit: Requested size, None for the default

    Returns:
        Effective page size
    """
    if limit is None:
        return settings.PAGINATION_DEFAULT_LIMIT
    return max(1, min(limit, settings.PAGINATION_MAX_LIMIT))


def get_page_params(page: PageQuery = 1, limit: LimitQuery = None) -> PageParams:
    """FastAPI dependency resolving ?page= and ?limit=."""
    return PageParams(page=page, limit=clamp_limit(limit))


Pagination = Annotated[PageParams, Depends(get_page_params)]


def build_meta(params: PageParams, total: int) -> dict[str, int | bool]:
    """
    Envelope `meta` block.

    Args:
        params: Effective page parameters
        total: Total matching items

    Returns:
        {page, limit, total, hasMore}
    """
    return {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "hasMore": params.page * params.limit < total,
    }
