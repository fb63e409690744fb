# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from portal_db import SessionLocal
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .routes import documents, health, loans, statuses
from .schemas.error import ErrorResponse
from .services.document_progress import init_progress_monitor
from .services.email import init_email_service, log_email_status
from .services.events import init_change_feed
from .services.sequestre import init_sequestre_monitor
from .services.side_effects import init_dispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Wire the side-effect pipeline on startup and drain it on shutdown."""
    log_email_status(settings)
    email_service = init_email_service(settings)
    dispatcher = init_dispatcher(settings)
    change_feed = init_change_feed(dispatcher)
    monitor = init_progress_monitor(settings, SessionLocal, dispatcher, email_service)
    change_feed.subscribe(monitor.evaluate)
    init_sequestre_monitor(dispatcher, email_service)
    yield
    await dispatcher.drain()
    if dispatcher.dead_letters:
        logger.warning("%d side effect(s) dead-lettered during this run", len(dispatcher.dead_letters))
    await email_service.aclose()


app = FastAPI(
    title="Pret Portal Lifecycle API",
    description="Loan and document status lifecycle for the mortgage portal",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Content",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _build_error(status_code: int, detail: str, request_id: str, code: str | None = None) -> ErrorResponse:
    return ErrorResponse(
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        code=code,
        request_id=request_id,
    )


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    body = _build_error(exc.status_code, str(exc.detail), _request_id(request), getattr(exc, "code", None))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert request validation errors to RFC 7807 Problem Details."""
    body = _build_error(422, str(exc.errors()), _request_id(request), "invalid_input")
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    request_id = _request_id(request)
    logger.exception("Unhandled exception (request_id=%s)", request_id)
    body = _build_error(500, "An unexpected error occurred.", request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(loans.router, prefix="/api/loans", tags=["loans"])
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(statuses.router, prefix="/api/statuses", tags=["statuses"])
