from typing import Type
from spoonjoy.core.exception.exceptions import BaseCustomException, GlobalErrorResponse


def create_error_response(*exception_classes: Type[BaseCustomException]):
    """OpenAPI ``responses`` for a route, one example per exception it may raise, grouped by status."""
    responses: dict[int, dict] = {}

    for exc_class in exception_classes:
        exc = exc_class()
        entry = responses.setdefault(
            exc.status_code,
            {"model": GlobalErrorResponse, "content": {"application/json": {"examples": {}}}},
        )

        example = {"status_code": exc.status_code, "code": exc.code, "detail": exc.detail}
        if exc.errors is not None:
            example["errors"] = exc.errors or {"field": "message"}

        entry["content"]["application/json"]["examples"][exc_class.__name__] = {
            "summary": exc.detail,
            "value": example,
        }

    return responses
