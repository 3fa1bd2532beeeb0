"""
FastAPI application entry point for the identity service.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog
import uvicorn

from .api.auth import router as auth_router
from .container.container import Container
from .core.config import Settings, get_settings
from .core.exceptions import (
    CredentialError,
    DeliveryError,
    GenericError,
    IdentityError,
    NotFoundError,
    ThrottledError,
    TokenInvalidError,
    ValidationError,
)

logger = structlog.get_logger()

# Most specific class first
ERROR_STATUS_CODES = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CredentialError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ThrottledError, status.HTTP_429_TOO_MANY_REQUESTS),
    (TokenInvalidError, status.HTTP_400_BAD_REQUEST),
    (DeliveryError, status.HTTP_502_BAD_GATEWAY),
    (GenericError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_code_for(exc: IdentityError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def configure_logging(settings: Settings) -> None:
    """Configure structured logging for the process."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None) -> FastAPI:
    """
    Factory function to create the FastAPI app.

    Args:
        settings: Configuration; loaded from the environment when omitted
        container: Pre-built container, mainly for tests
    """
    if settings is None:
        settings = get_settings()
    if container is None:
        container = Container(settings)
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan context manager.
        Handles startup and shutdown events.
        """
        logger.info("Starting identity service", version=settings.VERSION, environment=settings.ENVIRONMENT)
        try:
            await container.initialize()
            yield
        finally:
            logger.info("Shutting down identity service")
            await container.cleanup()
            logger.info("Identity service shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Identity credential service: passwords, tokens, email verification and password reset",
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )
    app.state.container = container

    @app.exception_handler(IdentityError)
    async def identity_exception_handler(request: Request, exc: IdentityError):
        """Map the error taxonomy onto HTTP status codes."""
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error("Request failed", path=request.url.path, error_code=exc.error_code)
        else:
            logger.info("Request rejected", path=request.url.path, error_code=exc.error_code)

        return JSONResponse(
            status_code=status_code,
            content={
                "error_code": exc.error_code,
                "message": exc.message
            }
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        logger.warning("Validation error", path=request.url.path)

        return JSONResponse(
            status_code=422,
            content={
                "error_code": "VALIDATION_ERROR",
                "message": "Invalid input",
                "errors": [
                    {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
                    for error in exc.errors()
                ]
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error_code": f"HTTP_{exc.status_code}",
                "message": exc.detail
            },
            headers=getattr(exc, "headers", None)
        )

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness and storage reachability."""
        checks = await container.health_check() if container.initialized else {}
        healthy = bool(checks) and all(checks.values())
        return JSONResponse(
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "checks": checks,
                "version": settings.VERSION
            }
        )

    app.include_router(auth_router, prefix=settings.API_V1_STR)
    return app


def run_dev():
    """Run development server."""
    uvicorn.run(
        "identity_service.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="debug"
    )


def run_prod():
    """Run production server."""
    uvicorn.run(
        "identity_service.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
        access_log=False  # structured logging instead
    )


if __name__ == "__main__":
    if get_settings().DEBUG:
        run_dev()
    else:
        run_prod()
