from pydantic import BaseModel, Field
from typing import Any


class BaseCustomException(Exception):
    def __init__(self, status_code: int, code: str, detail: str, errors: dict[str, str] | None = None):
        self.status_code = status_code
        self.code = code
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class DatabaseException(BaseCustomException):
    def __init__(self, detail: str = "A database error occurred."):
        super().__init__(status_code=500, code="DB_ERROR", detail=detail)


class UnexpectedException(BaseCustomException):
    def __init__(self, detail: str = "Internal server error."):
        super().__init__(status_code=500, code="SERVER_ERROR", detail=detail)


class StorageException(BaseCustomException):
    def __init__(self, detail: str = "A storage error occurred."):
        super().__init__(status_code=500, code="STORAGE_ERROR", detail=detail)


class LoginRequiredException(BaseCustomException):
    """Raised when a route needs a session; rendered as a redirect to the login page."""

    def __init__(self, redirect_to: str = "/", login_path: str = "/login"):
        self.redirect_to = redirect_to
        self.login_path = login_path
        super().__init__(status_code=302, code="LOGIN_REQUIRED", detail="Sign in to continue.")


class ForbiddenException(BaseCustomException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=403, code="FORBIDDEN", detail=detail)


class FormValidationException(BaseCustomException):
    def __init__(self, errors: dict[str, str] | None = None, detail: str = "Some fields are invalid."):
        super().__init__(
            status_code=400,
            code="VALIDATION_ERROR",
            detail=detail,
            errors=errors if errors is not None else {},
        )


class GlobalErrorResponse(BaseModel):
    status_code: int = Field(..., examples=[400])
    code: str = Field(..., examples=["ERROR_CODE_STRING"])
    detail: str = Field(..., examples=["A human readable error message."])
    errors: dict[str, str] | list[Any] | None = Field(None, description="Field errors for invalid form input")
