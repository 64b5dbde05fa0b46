"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursereg import __version__
from coursereg.api.dependencies import MissingIdentityError, close_services, init_services
from coursereg.api.models import APIResponse
from coursereg.api.routes import approvals, course_uploads, courses, registrations, semesters
from coursereg.config import Settings
from coursereg.store import (
    CourseExistsError,
    NotFoundError,
    StoreError,
)
from coursereg.workflow import (
    AuthorizationError,
    CreditLimitExceededError,
    DuplicateCourseError,
    InvalidSemesterError,
    InvalidStateError,
    WorkflowError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Coroutine
    from typing import Any

logger = logging.getLogger(__name__)

# Most specific class wins: handlers are looked up along the exception's MRO.
ERROR_STATUS: dict[type[Exception], int] = {
    MissingIdentityError: status.HTTP_401_UNAUTHORIZED,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidSemesterError: status.HTTP_400_BAD_REQUEST,
    CreditLimitExceededError: status.HTTP_400_BAD_REQUEST,
    InvalidStateError: status.HTTP_409_CONFLICT,
    DuplicateCourseError: status.HTTP_409_CONFLICT,
    CourseExistsError: status.HTTP_409_CONFLICT,
    WorkflowError: status.HTTP_400_BAD_REQUEST,
}


def _error_response(status_code: int, message: str, code: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message, code=code).model_dump(),
    )


def _expected_error_handler(
    status_code: int,
) -> Callable[[Request, Exception], Coroutine[Any, Any, JSONResponse]]:
    async def handler(_request: Request, exc: Exception) -> JSONResponse:
        code = getattr(exc, "kind", type(exc).__name__)
        return _error_response(status_code, str(exc), code)

    return handler


def register_exception_handlers(app: FastAPI) -> None:
    """Translate workflow and store errors into APIResponse envelopes."""
    for exc_type, status_code in ERROR_STATUS.items():
        app.add_exception_handler(exc_type, _expected_error_handler(status_code))

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "InternalError"
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "InternalError"
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = getattr(app.state, "settings", None)
    if settings is None:
        settings = Settings.from_env()
        app.state.settings = settings
    init_services(settings)
    logger.info(
        "CourseReg API started (db=%s, max_credits=%d)", settings.db_path, settings.max_credits
    )
    yield
    close_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without ``settings`` the environment is read when the lifespan starts.
    """
    app = FastAPI(
        title="CourseReg API",
        description="REST API for semester registration and course approval",
        version=__version__,
        lifespan=lifespan,
    )

    if settings is not None:
        app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(semesters.router, prefix="/api/v1")
    app.include_router(courses.router, prefix="/api/v1")
    app.include_router(registrations.router, prefix="/api/v1")
    app.include_router(course_uploads.router, prefix="/api/v1")
    app.include_router(approvals.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
