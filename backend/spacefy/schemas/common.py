"""Response envelope and pagination shared by every resource router."""

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Literal, Optional, TypeVar

from fastapi import Query
from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    sort: str
    order: str


class ApiResponse(BaseModel, Generic[T]):
    """``{"success": true, "data": ..., "meta": ..., "source": "database"}``.

    ``source`` becomes ``"cache"`` when the body is served from the response cache.
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    meta: Optional[PageMeta] = None
    source: Literal["database", "cache"] = "database"


class CountResult(BaseModel):
    """Result of a bulk write that skips duplicates."""
    inserted_count: int
    total_records: int


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int
    sort: str
    order: str

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> PageMeta:
        return PageMeta(
            page=self.page,
            limit=self.limit,
            total=total,
            total_pages=math.ceil(total / self.limit) if total else 0,
            sort=self.sort,
            order=self.order,
        )


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = Query("created_at", min_length=1, max_length=50),
    order: Literal["asc", "desc"] = Query("desc"),
) -> PageParams:
    """Pagination query parameters as a dependency."""
    return PageParams(page=page, limit=limit, sort=sort, order=order)


def page_response(items: List[Any], schema: type, params: PageParams, total: int) -> ApiResponse:
    return ApiResponse(
        data=[schema.model_validate(item) for item in items],
        meta=params.meta(total),
    )
