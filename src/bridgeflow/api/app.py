"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bridgeflow import __version__
from bridgeflow.config import get_settings


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Bridgeflow API",
        description="Read-only quotes and balances for native-to-destination bridging",
        version=__version__,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from bridgeflow.api.routes import bridge, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(bridge.router, prefix="/api/v1", tags=["Bridge"])

    return app
