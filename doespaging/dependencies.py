from typing import Optional

from fastapi import Query, Request
from starlette.datastructures import QueryParams


def get_request_params(request: Request) -> QueryParams:
    """FastAPI dependency returning every query parameter of the request."""
    return request.query_params


class PagingQueryParams:
    """Paging, sorting and filter parameters for list endpoints.

    The declared parameters are validated and documented in the OpenAPI
    schema. Free-form filter keys are not declared; every parameter, declared
    or not, is available unchanged through ``params``.
    """

    def __init__(
        self,
        request: Request,
        limit: Optional[int] = Query(None, ge=1, description="Number of rows per page"),
        start: Optional[int] = Query(None, ge=0, description="Zero-based offset of the first row"),
        sort: Optional[str] = Query(None, description="Column to sort by"),
        dir: Optional[str] = Query(
            None, pattern="(?i)^(asc|desc)$", description="Sort direction (asc or desc)"
        ),
    ):
        self.limit = limit
        self.start = start
        self.sort = sort
        self.dir = dir
        self.params = request.query_params
