"""
SoilSense Telemetry API - FastAPI Application
Main entry point for the API server
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
import uvicorn

from soilsense import __version__
from soilsense.api.routes import auth, devices, health
from soilsense.core.config import Settings
from soilsense.core.errors import ConfigurationError, SoilSenseError
from soilsense.core.logging import configure_logging
from soilsense.database.connection import build_engine, build_session_factory, init_database
from soilsense.services.tokens import TokenService

logger = structlog.get_logger(__name__)


def _error_body(message: str) -> dict:
    return {"status": "error", "error": message}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting SoilSense Telemetry API")
    # Startup
    init_database(app.state.engine)
    yield
    # Shutdown
    app.state.engine.dispose()
    logger.info("Shutting down SoilSense Telemetry API")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around an explicit settings object.

    Raises:
        ConfigurationError: no token signing secret is configured
    """
    settings = settings or Settings()
    configure_logging(settings.log_level)

    if not settings.has_signing_secret:
        raise ConfigurationError("JWT_SECRET must be set; refusing to start without a signing secret")

    app = FastAPI(
        title="SoilSense Telemetry API",
        description="User and sensor device registration, telemetry ingestion and readings",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.token_service = TokenService.from_settings(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(auth.router, tags=["auth"])
    app.include_router(devices.router, tags=["devices"])

    @app.exception_handler(SoilSenseError)
    async def domain_exception_handler(request: Request, exc: SoilSenseError):
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message)
        else:
            logger.info("Request rejected", path=request.url.path, status=exc.status_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(part) for part in err["loc"][1:]) or "body" for err in exc.errors())
        return JSONResponse(status_code=400, content=_error_body(f"Invalid request: {fields}"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal Server Error")
        )

    return app


def run():
    settings = Settings()
    uvicorn.run(
        "soilsense.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
