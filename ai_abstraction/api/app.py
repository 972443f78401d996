"""
FastAPI Application Factory

Mounts the chat completion routes for a given abstraction layer instance and
maps the exception hierarchy onto HTTP responses.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ai_abstraction.api.routes import router as ai_router
from ai_abstraction.core.config.constants import Stage
from ai_abstraction.core.config.settings import Settings, get_settings
from ai_abstraction.core.exceptions import (
    AIAbstractionError,
    AllProvidersFailedError,
    ConfigurationError,
    CredentialError,
    ProviderInactiveError,
    ProviderNotFoundError,
    StreamInterruptedError,
)
from ai_abstraction.core.logging.logger import get_logger, log_stage, setup_logging
from ai_abstraction.services.abstraction_layer import AIProviderAbstractionLayer

logger = get_logger(__name__)

API_BASE_PATH = "/api/v1"

# Most specific first
_STATUS_BY_ERROR: tuple[tuple[type[AIAbstractionError], int], ...] = (
    (ProviderNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProviderInactiveError, status.HTTP_409_CONFLICT),
    (ConfigurationError, status.HTTP_400_BAD_REQUEST),
    (AllProvidersFailedError, status.HTTP_502_BAD_GATEWAY),
    (StreamInterruptedError, status.HTTP_502_BAD_GATEWAY),
    (CredentialError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(error: AIAbstractionError) -> int:
    for error_class, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def abstraction_error_handler(request: Request, exc: AIAbstractionError) -> JSONResponse:
    status_code = status_for(exc)
    log_stage(
        logger,
        Stage.API,
        "Request failed",
        level="warning",
        path=request.url.path,
        status_code=status_code,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app(layer: AIProviderAbstractionLayer, settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        layer: The facade the routes delegate to
        settings: Configuration (global settings when omitted)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)
        logger.info(
            "Starting AI abstraction layer API",
            environment=settings.app.ENVIRONMENT,
            version=settings.app.APP_VERSION,
        )
        await layer.start()
        try:
            yield
        finally:
            await layer.shutdown()
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Provider-agnostic chat completions with caching and fallback",
        lifespan=lifespan,
    )
    app.state.abstraction_layer = layer
    app.add_exception_handler(AIAbstractionError, abstraction_error_handler)
    app.include_router(ai_router, prefix=API_BASE_PATH)
    return app
