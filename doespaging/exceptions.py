from fastapi import HTTPException, status


class ValidationException(HTTPException):
    """Validation error exception (422)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


# ===== Paging-specific Exceptions =====


class MissingParameterException(ValidationException):
    """A required request parameter is absent or empty (422)."""

    def __init__(self, name: str):
        self.param = name
        super().__init__(f"Required request parameter ({name}) undefined!")


class InvalidPageSize(ValidationException):
    """Page size is zero, negative or not a number (422)."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid page size: {value!r}")


class MissingHookError(TypeError):
    """A model is missing a controller_search/controller_sort hook."""

    def __init__(self, model: type, hook: str):
        self.model = model
        self.hook = hook
        super().__init__(f"{model.__name__} does not define {hook}()")
