from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageInfo(BaseModel):
    """Page derived from the limit/start request parameters."""

    rows: int
    page: int = 1

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.rows


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: List[T]
    total: int
    start: int = 0
    limit: int = 25
    page: int = 1

    @classmethod
    def create(cls, items: List[Any], total: int, page_info: PageInfo):
        """Build a response from fetched items and the page they belong to."""
        return cls(
            items=items,
            total=total,
            start=page_info.offset,
            limit=page_info.rows,
            page=page_info.page,
        )


class DeletionResponse(BaseModel):
    """Identifiers removed by a bulk deletion."""

    deleted: List[Any]


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: dict

    @classmethod
    def create(cls, code: str, message: str, details: dict = None):
        """Create error response with standard format."""
        return cls(
            error={"code": code, "message": message, "details": details or {}}
        )
