import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette import status
from sqlalchemy.exc import StatementError

from nss_portal.api.router import api_router
from nss_portal.api.events.scheduler import EventStatusScheduler
from nss_portal.config import settings
from nss_portal.db.core import AsyncSessionLocal
from nss_portal.response import ErrorResponse, CustomHTTPException
from nss_portal.core.utils.error_webhook import notify_error
from nss_portal.core.middlewares.process_time_middleware import ProcessingTimeMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.STATUS_SWEEP_ENABLED:
        scheduler = EventStatusScheduler(
            AsyncSessionLocal, interval=settings.STATUS_SWEEP_INTERVAL_SECONDS
        )
        await scheduler.start()
    app.state.status_scheduler = scheduler
    yield
    if scheduler:
        await scheduler.stop()


application = FastAPI(
    title="NSS Portal API",
    version=settings.APP_VERSION,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

application.include_router(router=api_router)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
application.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

application.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
application.add_middleware(ProcessingTimeMiddleware)


@application.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    track_id = str(uuid.uuid4())
    logger.exception(
        "Unhandled error on %s %s (track_id=%s)",
        request.method,
        request.url.path,
        track_id,
        exc_info=exc,
    )
    try:
        await notify_error(request, exc, track_id)
    except Exception:
        logger.exception("Error while sending error notification")
    return ErrorResponse.internal(exc, track_id, debug=settings.DEBUG).get_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR
    )


@application.exception_handler(StatementError)
async def statement_error_handler(request: Request, exc: StatementError):
    if isinstance(exc.orig, CustomHTTPException):
        return exc.orig.get_response(exc.orig.status_code, exc.orig.headers)
    return await internal_error_handler(request, exc)


@application.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error["loc"]]
        key = ".".join(loc[1:]) if len(loc) > 1 else loc[0]
        errors.setdefault(key, error["msg"])

    return ErrorResponse(
        message="Invalid request",
        error_code="VALIDATION_ERROR",
        errors=errors,
    ).get_response(status.HTTP_400_BAD_REQUEST)


@application.exception_handler(CustomHTTPException)
async def http_exception_handler(request: Request, exc: CustomHTTPException):
    return exc.get_response(exc.status_code, exc.headers)


@application.head("/ping")
async def ping():
    return Response(status_code=status.HTTP_204_NO_CONTENT)
