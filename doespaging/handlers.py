import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from doespaging.exceptions import (
    InvalidPageSize,
    MissingParameterException,
    ValidationException,
)
from doespaging.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def add_exception_handlers(app: FastAPI) -> None:
    """Register JSON error handlers for request validation and paging errors."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse.create(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details={"errors": exc.errors()},
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValidationException)
    async def paging_exception_handler(request: Request, exc: ValidationException):
        """Handle rejected paging, sorting and deletion parameters."""
        if isinstance(exc, MissingParameterException):
            code = "MISSING_PARAMETER"
            details = {"param": exc.param}
        elif isinstance(exc, InvalidPageSize):
            code = "INVALID_PAGE_SIZE"
            details = {"value": exc.value}
        else:
            code = "INVALID_PARAMETER"
            details = {}

        logger.warning(f"{request.method} {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse.create(
                code=code,
                message=exc.detail,
                details=details,
            ).model_dump(mode="json"),
        )
