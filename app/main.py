"""FastAPI application entry point."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Tuple, Type
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.v1.endpoints import health
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import close_database, init_database
from app.core.exceptions import (
    AppError,
    ConflictError,
    EmptyResultError,
    NotFoundError,
    ValidationError,
)
from app.core.redis_client import close_redis, init_redis
from app.utils.logging import get_logger
from app.utils.responses import create_error_detail

LOGGER = get_logger(__name__, level=settings.log_level)

# Most specific first; InternalError and unknown AppErrors fall through to 500.
ERROR_STATUS: Dict[Type[AppError], Tuple[int, str]] = {
    ValidationError: (422, "Validation Failed"),
    ConflictError: (409, "Conflict"),
    EmptyResultError: (404, "No Data Available"),
    NotFoundError: (404, "Resource Not Found"),
}


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    LOGGER.info(
        "Starting application",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
    )

    LOGGER.info("Starting database initialization...")
    try:
        await asyncio.wait_for(init_database(create_tables=True), timeout=settings.db_init_timeout)
        LOGGER.info("Database initialized successfully")
    except asyncio.TimeoutError:
        LOGGER.error(f"Database initialization timed out after {settings.db_init_timeout}s")
    except Exception as e:
        LOGGER.error(f"Database initialization failed: {e}", exc_info=True)

    LOGGER.info("Starting Redis initialization...")
    try:
        await asyncio.wait_for(init_redis(), timeout=10.0)
        LOGGER.info("Redis initialized successfully")
    except asyncio.TimeoutError:
        LOGGER.error("Redis initialization timed out after 10s")
    except Exception as e:
        LOGGER.error(f"Redis initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    LOGGER.info("Shutting down application")
    await close_redis()
    await close_database()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Reporting views, coverage ranking and validated writes over insurance records",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


# CORS middleware - added last to ensure it wraps all other middleware/responses
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render application errors as problem details.

    Internal errors are logged with their cause and reported without it.
    """
    for error_type, (status_code, title) in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            LOGGER.warning(
                f"{title}: {exc.message}",
                extra={"path": request.url.path, "error_type": type(exc).__name__},
            )
            error_detail = create_error_detail(
                title=title,
                status=status_code,
                detail=exc.message,
                request=request,
                field=getattr(exc, "field", None),
            )
            return JSONResponse(status_code=status_code, content=error_detail.model_dump(mode="json"))

    LOGGER.error(
        f"Request failed: {exc.message}",
        exc_info=exc.original_error or exc,
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    error_detail = create_error_detail(
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="The request could not be completed",
        request=request,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_detail.model_dump(mode="json"),
    )


# Include routers
app.include_router(api_router, prefix=settings.api_v1_prefix)
app.include_router(health.router, prefix="/health", tags=["Health"])


# Root endpoint
@app.get(
    "/",
    response_model=RootResponse,
    tags=["Root"],
    summary="Root endpoint",
    description="Get basic information about the API",
    operation_id="get_public_root_metadata",
)
async def root() -> RootResponse:
    """Root endpoint.

    Returns:
        RootResponse: Basic API information
    """
    return RootResponse(
        message="Server is running",
        version=settings.app_version,
        docs="/docs",
        health="/health",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
