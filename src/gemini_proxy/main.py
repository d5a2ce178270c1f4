"""Main entry point for the Gemini Proxy application."""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from gemini_proxy import __version__
from gemini_proxy.api.routes import router
from gemini_proxy.core.config import Settings, get_settings
from gemini_proxy.core.exceptions import ProxyError
from gemini_proxy.core.forwarder import UpstreamForwarder
from gemini_proxy.core.logging import get_logger, setup_logging

logger = get_logger(__name__)

LIVENESS_MESSAGE = "Gemini Proxy Server is running!"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan management
    Opens the upstream connection pool on startup and closes it on shutdown
    """
    settings: Settings = app.state.settings
    forwarder_config = settings.get_forwarder_config()

    # uvicorn has applied its own logging config by this point
    if app.state.configure_logging:
        setup_logging(settings)

    logger.info(
        "proxy_starting",
        host=settings.HOST,
        port=settings.PORT,
        upstream=forwarder_config.upstream_url,
        timeout_ms=forwarder_config.timeout_ms,
        log_level=settings.LOG_LEVEL
    )

    async with UpstreamForwarder(forwarder_config, transport=app.state.upstream_transport) as forwarder:
        app.state.forwarder = forwarder
        yield
        app.state.forwarder = None

    logger.info("proxy_stopped")


async def proxy_error_handler(request: Request, exc: ProxyError):
    """Render proxy errors raised by route handlers"""
    logger.debug(
        "proxy_error",
        url=str(request.url),
        method=request.method,
        error=exc.message,
        status_code=exc.get_http_status_code()
    )
    return JSONResponse(status_code=exc.get_http_status_code(), content=exc.to_dict())


async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler for unhandled errors"""
    logger.error(
        "unhandled_exception",
        url=str(request.url),
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal server error"}
    )


def create_app(
    settings: Optional[Settings] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
    configure_logging: bool = False
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the process-wide settings
        upstream_transport: Optional httpx transport for the upstream client
        configure_logging: Apply structlog setup when the app starts
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Gemini Proxy",
        description="Reverse proxy between client apps and the AI response service",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "health",
                "description": "Liveness and proxy status"
            },
            {
                "name": "proxy",
                "description": "Request proxying to the AI service"
            }
        ]
    )
    app.state.settings = settings
    app.state.upstream_transport = upstream_transport
    app.state.configure_logging = configure_logging
    app.state.forwarder = None

    # Add custom exception handlers
    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(router)

    # Root endpoint
    @app.get("/", tags=["health"], response_class=PlainTextResponse)
    async def root():
        """Plain-text liveness marker"""
        return LIVENESS_MESSAGE

    return app


# Create app instance for uvicorn to find
app = create_app(configure_logging=True)


def main() -> None:
    """Main entry point for the application."""
    settings = get_settings()
    setup_logging(settings)

    logger.info("proxy_launching", url=f"http://{settings.HOST}:{settings.PORT}")

    uvicorn.run(
        create_app(settings, configure_logging=True),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
        server_header=False,  # Don't reveal server info
        date_header=True,
    )


if __name__ == "__main__":
    main()
