"""FastAPI application setup and configuration."""

import httpx
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopify_utm import __version__
from shopify_utm.config.constants import BULK_STATUS_NONE
from shopify_utm.config.settings import settings
from shopify_utm.core.exceptions import (
    ConfigurationError,
    NotReadyError,
    ShopifyUTMError,
    UpstreamJobError,
    UpstreamRequestError,
)
from shopify_utm.core.logger import setup_logger
from shopify_utm.core.monitoring import capture_exception, init_monitoring

logger = setup_logger(__name__)


def error_status(error: ShopifyUTMError) -> int:
    """HTTP status for a pipeline error."""
    if isinstance(error, NotReadyError):
        if error.status == BULK_STATUS_NONE:
            return status.HTTP_404_NOT_FOUND
        return status.HTTP_409_CONFLICT
    if isinstance(error, (UpstreamRequestError, UpstreamJobError)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_pipeline_error(request: Request, error: ShopifyUTMError) -> JSONResponse:
    """Turn a pipeline error into a single structured JSON response."""
    status_code = error_status(error)

    if isinstance(error, NotReadyError):
        logger.info(f"{request.url.path}: {error}")
    else:
        logger.error(f"{request.url.path} error: {error}")
        if not isinstance(error, ConfigurationError):
            capture_exception(error, context={"path": request.url.path, **error.to_dict()})

    return JSONResponse(status_code=status_code, content=error.to_dict())


async def handle_transport_error(request: Request, error: httpx.HTTPError) -> JSONResponse:
    """Shopify could not be reached at all."""
    logger.error(f"{request.url.path} transport error: {error}", exc_info=True)
    capture_exception(error, context={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": f"Could not reach Shopify: {error}"},
    )


async def handle_http_error(request: Request, error: StarletteHTTPException) -> JSONResponse:
    """Auth and bad-input rejections in the same body shape as pipeline errors."""
    if error.status_code >= 500:
        logger.error(f"{request.url.path}: {error.detail}")
    else:
        logger.info(f"{request.url.path} rejected ({error.status_code}): {error.detail}")
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.detail},
        headers=getattr(error, "headers", None),
    )


async def handle_validation_error(request: Request, error: RequestValidationError) -> JSONResponse:
    """Malformed query or body parameters are bad input (400)."""
    details = jsonable_encoder(error.errors())
    first = details[0] if details else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
    message = f"Invalid {field}: {first.get('msg', 'invalid value')}"

    logger.info(f"{request.url.path} rejected (400): {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "details": details},
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Shopify UTM Dashboard",
        version=__version__,
        description="Fetches Shopify orders and exports their UTM attribution (REST or bulk operations)",
    )

    # Initialize GlitchTip error monitoring (Sentry-compatible)
    init_monitoring(settings.glitchtip_dsn, settings.environment)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ShopifyUTMError, handle_pipeline_error)
    app.add_exception_handler(httpx.HTTPError, handle_transport_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    # Import and include routers
    from shopify_utm.server import bulk_routes, order_routes, routes

    app.include_router(routes.router)
    app.include_router(order_routes.router)
    app.include_router(bulk_routes.router)

    @app.on_event("startup")
    async def startup_handler():
        """Log configuration problems early; requests will still fail fast."""
        if not settings.shopify_store or not settings.shopify_access_token:
            logger.warning("SHOPIFY_STORE or SHOPIFY_ACCESS_TOKEN not set; order endpoints will fail")
        logger.info("Application startup completed")

    @app.on_event("shutdown")
    async def shutdown_handler():
        """Close the shared Shopify connection pool."""
        http_client = getattr(app.state, "http_client", None)
        if http_client is not None:
            await http_client.aclose()
            app.state.http_client = None
        logger.info("Graceful shutdown completed successfully")

    return app
