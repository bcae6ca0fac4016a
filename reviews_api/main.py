from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reviews_api.core.config import settings
from reviews_api.core.errors import ReviewServiceError
from reviews_api.core.logging_config import configure_logging
from reviews_api.db.base import Base
from reviews_api.db.session import engine

import reviews_api.models

from reviews_api.routers import reviews
from reviews_api.schemas.errors import ErrorResponse

configure_logging(
    log_dir=settings.log_dir,
    level=settings.log_level,
    filename=settings.log_file,
    max_bytes=settings.log_max_bytes,
    backup_count=settings.log_backup_count,
)
logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, message: str, validation_errors: dict[str, str] | None = None) -> JSONResponse:
    body = ErrorResponse(status=status_code, error=error, message=message, validation_errors=validation_errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def _field_name(loc: tuple) -> str:
    # ("body", "rating") -> "rating"; ("header", "x-user-id") -> "x-user-id"
    parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
    return ".".join(parts)


def create_app() -> FastAPI:
    app = FastAPI(title="Reviews API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        Base.metadata.create_all(bind=engine)
        logger.info("DB ready")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error")
            return _error(500, "Internal Server Error", "Internal server error")
        duration_ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration_ms)
        return response

    @app.exception_handler(ReviewServiceError)
    async def review_error_handler(request: Request, exc: ReviewServiceError) -> JSONResponse:
        logger.warning("%s: %s", type(exc).__name__, exc.message)
        return _error(exc.status_code, exc.title, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = {_field_name(tuple(e.get("loc", ()))): e.get("msg", "invalid") for e in exc.errors()}
        logger.warning("Validation errors: %s", errors)
        return _error(400, "Validation Error", "Request validation failed", errors)

    app.include_router(reviews.router)

    return app


app = create_app()
