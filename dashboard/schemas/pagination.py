from typing import Generic, List, Sequence, TypeVar
from pydantic import BaseModel
from fastapi import Query

T = TypeVar("T")


class PaginationParams:
    """Inject as Depends(PaginationParams) into list endpoints."""
    def __init__(
        self,
        offset: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(20, ge=1, le=200, description="Max records to return"),
    ):
        self.offset = offset
        self.limit = limit


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    offset: int
    limit: int
    has_more: bool = False

    @classmethod
    def build(cls, items: Sequence, total: int, params: PaginationParams) -> "PaginatedResponse[T]":
        return cls(
            items=list(items),
            total=total,
            offset=params.offset,
            limit=params.limit,
            has_more=params.offset + len(items) < total,
        )
