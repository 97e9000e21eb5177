"""Paginate, search, sort and bulk-delete SQLAlchemy statements from request parameters."""

from doespaging.dependencies import PagingQueryParams, get_request_params
from doespaging.dispatch import SearchClause, build_search, build_sort
from doespaging.exceptions import (
    InvalidPageSize,
    MissingHookError,
    MissingParameterException,
    ValidationException,
)
from doespaging.handlers import add_exception_handlers
from doespaging.paging import ConventionPaging, DoesPaging
from doespaging.schemas import DeletionResponse, PageInfo, PaginatedResponse

__version__ = "0.1.0"

__all__ = [
    "ConventionPaging",
    "DeletionResponse",
    "DoesPaging",
    "InvalidPageSize",
    "MissingHookError",
    "MissingParameterException",
    "PageInfo",
    "PaginatedResponse",
    "PagingQueryParams",
    "SearchClause",
    "ValidationException",
    "add_exception_handlers",
    "build_search",
    "build_sort",
    "get_request_params",
]
