"""
Module 07 - FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, epochs, claims, proofs
from api.errors import (
    APIError,
    api_error_handler,
    generic_error_handler,
    request_validation_handler,
    snapshot_error_handler,
)
from core.config.runtime import LOG_FORMAT, configure_logging, load_runtime_config
from core.schemas.errors import SnapshotException


# Respects SNAPSHOT_LOG_LEVEL; a no-op when logging is already configured
logging.basicConfig(
    level=getattr(logging, os.getenv("SNAPSHOT_LOG_LEVEL", "INFO").upper(), logging.INFO),
    format=LOG_FORMAT,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Epoch Snapshot API",
        description="""
HTTP API for the epoch reward snapshot generator.

## Endpoints

- **POST /epochs/snapshot** - Compute allocations, persist them and publish the Merkle root
- **POST /epochs/{epoch_id}/resume** - Resume a pending epoch from its last stage
- **POST /claims** - Claimable allocations with Merkle proofs
- **POST /proofs/verify** - Verify a proof against a root
- **GET /health** - Health check

## Amounts

Base-unit amounts (nanoTON, lamports) are returned as decimal strings.
Leaves are `sha256_hex(wallet + ":" + amount_base_units)`.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(SnapshotException, snapshot_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(epochs.router)
    app.include_router(claims.router)
    app.include_router(proofs.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    configure_logging(load_runtime_config().log_level)
    uvicorn.run(app, host="0.0.0.0", port=8000)
