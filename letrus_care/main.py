"""Letrus Care FastAPI application."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from letrus_care.core.auth.router import router as auth_router
from letrus_care.core.config import settings
from letrus_care.core.database import Database
from letrus_care.core.exceptions import AppException
from letrus_care.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from letrus_care.core.logging import configure_logging
from letrus_care.core.scheduler import shutdown_scheduler, start_scheduler
from letrus_care.modules.centers.router import router as centers_router
from letrus_care.modules.courses.router import classes_router
from letrus_care.modules.courses.router import router as courses_router
from letrus_care.modules.dashboard.router import router as dashboard_router
from letrus_care.modules.enrollments.router import router as enrollments_router
from letrus_care.modules.financial_plans.router import router as financial_plans_router
from letrus_care.modules.payments.router import router as payments_router
from letrus_care.modules.school_years.router import router as school_years_router
from letrus_care.modules.students.router import router as students_router
from letrus_care.shared.schemas import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: database engine and background jobs."""
    # Startup
    configure_logging()
    database: Database = app.state.database
    database.init()
    app.state.scheduler = start_scheduler(database)
    logger.info("Letrus Care API started (%s)", settings.app_env)
    yield
    # Shutdown
    shutdown_scheduler(app.state.scheduler)
    await database.dispose()


def create_app(database: Database | None = None) -> FastAPI:
    """Create and configure FastAPI application. Nothing connects until startup."""
    app = FastAPI(
        title="Letrus Care",
        description="Administration backend for schools and learning centers",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.database = database or Database(settings.database_url, pool_pre_ping=True)
    app.state.scheduler = None

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_timeout(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.request_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Request timed out: %s %s", request.method, request.url.path)
            body = ErrorResponse(code="REQUEST_TIMEOUT", message="Request timed out")
            return JSONResponse(status_code=504, content=body.model_dump())

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(centers_router, prefix="/api/v1")
    app.include_router(students_router, prefix="/api/v1")
    app.include_router(courses_router, prefix="/api/v1")
    app.include_router(classes_router, prefix="/api/v1")
    app.include_router(school_years_router, prefix="/api/v1")
    app.include_router(enrollments_router, prefix="/api/v1")
    app.include_router(financial_plans_router, prefix="/api/v1")
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")

    return app


app = create_app()
