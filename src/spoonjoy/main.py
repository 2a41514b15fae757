import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from spoonjoy.api.v1.api import api_router
from spoonjoy.core.config import settings
from spoonjoy.core.database import create_tables, engine
from spoonjoy.core.exception.exception_handlers import (
    custom_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    system_exception_handler,
)
from spoonjoy.core.exception.exceptions import BaseCustomException

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("spoonjoy")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
        logger.info("Database tables ensured")
    yield
    await engine.dispose()


app = FastAPI(title="Spoonjoy", version="0.1.0", lifespan=lifespan)

app.add_exception_handler(BaseCustomException, custom_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, system_exception_handler)

app.include_router(api_router)
