import logging
from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from spoonjoy.core.exception.exceptions import BaseCustomException, LoginRequiredException

logger = logging.getLogger("spoonjoy.errors")


async def custom_exception_handler(request: Request, exc: BaseCustomException):
    if isinstance(exc, LoginRequiredException):
        return await login_required_handler(request, exc)

    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)

    content = {
        "status_code": exc.status_code,
        "code": exc.code,
        "detail": exc.detail,
    }
    if exc.errors is not None:
        content["errors"] = exc.errors

    return JSONResponse(status_code=exc.status_code, content=content)


async def login_required_handler(request: Request, exc: LoginRequiredException):
    query = urlencode({"redirectTo": exc.redirect_to})
    return RedirectResponse(url=f"{exc.login_path}?{query}", status_code=status.HTTP_302_FOUND)


async def system_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "status_code": 500,
            "code": "INTERNAL_SERVER_ERROR",
            "detail": "Something went wrong. Please try again.",
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status_code": exc.status_code,
            "code": "HTTP_ERROR",
            "detail": exc.detail,
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    for error in errors:
        if "ctx" in error:
            for key, value in error["ctx"].items():
                if isinstance(value, Exception):
                    error["ctx"][key] = str(value)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": errors, "message": "Request validation failed"}),
    )
