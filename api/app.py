"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import (
    APIError,
    api_error_handler,
    engine_error_handler,
    generic_error_handler,
)
from api.routes import health, products
from core.schemas.errors import ProdsealException


def _resolve_log_level() -> int:
    """Resolve log level from PRODSEAL_LOG_LEVEL, defaulting to INFO."""
    raw = os.getenv("PRODSEAL_LOG_LEVEL", "INFO")
    return getattr(logging, raw.upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Product Commitment API",
        description="""
Tamper-evident product records.

## Endpoints

- **POST /add** - Commit a product: salted leaves, anchored root, stored content
- **POST /verify** - Recompute the root from stored content and compare
- **GET /health** - Health check

## Outcomes

`/verify` answers `Authentic Product` or `Tampered Product`. Both are
successful responses; errors are reserved for unknown products, missing
salts and unavailable collaborators.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(ProdsealException, engine_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.include_router(health.router)
    app.include_router(products.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
