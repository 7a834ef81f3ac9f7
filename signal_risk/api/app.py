"""
FastAPI application factory.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from signal_risk import __version__
from signal_risk.api.dependencies import cleanup_dependencies
from signal_risk.api.middleware import RequestContextMiddleware, TimeoutMiddleware
from signal_risk.api.routes import analysis, assets, feeds, health, scenarios
from signal_risk.config.settings import get_settings
from signal_risk.errors import (
    AnalysisUnavailableError,
    IneligibleHeadlineError,
    UnknownAssetError,
    UnknownScenarioError,
)

logger = structlog.get_logger(__name__)

# Domain errors raised by services, mapped to (status code, error_type)
ERROR_RESPONSES: dict[type[Exception], tuple[int, str]] = {
    UnknownAssetError: (404, "not_found"),
    UnknownScenarioError: (404, "not_found"),
    IneligibleHeadlineError: (422, "ineligible"),
    AnalysisUnavailableError: (502, "analysis_unavailable"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Signal risk API starting up")

    yield

    logger.info("Signal risk API shutting down")
    await cleanup_dependencies()


def _error(status_code: int, detail: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_type": error_type},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "assets", "description": "Monitored assets and current risk"},
        {"name": "feeds", "description": "Headline scanning and the current feed"},
        {"name": "analysis", "description": "Deep impact analysis and risk scoring"},
        {"name": "scenarios", "description": "Offline demo scenarios"},
    ]

    app = FastAPI(
        title="Signal Risk API",
        description="""
Supply-chain risk monitoring for lithium, oil and semiconductors.

## Pipeline

- **Scan**: RSS and AI-discovered headlines go through keyword triage and
  model relevance confirmation
- **Analyze**: flagged headlines or free-text events get a grounded impact
  analysis and move the asset's 0-10 risk score

## Authentication

Requires `X-API-KEY` header for all requests except `/health` when
`API_KEYS` is set.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # Add CORS middleware (origins from CORS_ORIGINS env var, comma-separated)
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Middleware added last runs first: request context wraps the timeout
    if settings.request_timeout_seconds > 0:
        app.add_middleware(
            TimeoutMiddleware,
            timeout_seconds=settings.request_timeout_seconds,
            long_timeout_seconds=settings.long_request_timeout_seconds,
        )
    app.add_middleware(RequestContextMiddleware)

    # Rate limiting (opt-in via RATE_LIMIT_ENABLED=true)
    if settings.rate_limit_enabled:
        from slowapi import _rate_limit_exceeded_handler
        from slowapi.errors import RateLimitExceeded

        from signal_risk.api.rate_limit import limiter

        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    async def domain_error_handler(request: Request, exc: Exception):
        status_code, error_type = next(
            v for cls, v in ERROR_RESPONSES.items() if isinstance(exc, cls)
        )
        if status_code >= 500:
            logger.warning("Analysis unavailable", path=request.url.path, error=str(exc))
        return _error(status_code, str(exc), error_type)

    for exc_class in ERROR_RESPONSES:
        app.add_exception_handler(exc_class, domain_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error(500, "Internal server error", "internal")

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(assets.router, tags=["assets"])
    app.include_router(feeds.router, tags=["feeds"])
    app.include_router(analysis.router, tags=["analysis"])
    app.include_router(scenarios.router, tags=["scenarios"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Signal Risk API",
            "version": __version__,
            "docs": "/docs",
        }

    return app
