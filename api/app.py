"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application for the
Face Vector Authentication API.

The application provides:
- REST endpoint for registration
- REST endpoint for authentication
- REST endpoints for user management
- Health check endpoint

Usage:
    # From project root:
    uvicorn api.app:app --host 0.0.0.0 --port 5000 --reload

    # Or run directly:
    python -m api.app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_error_handlers
from api.routes import (
    registration_router,
    authentication_router,
    management_router,
)
from api.schemas import HealthResponse
from core.config import get_api_config, get_logging_config, get_server_config
from core.enrollment_store import (
    close_enrollment_store,
    get_enrollment_store,
    utc_now,
)
from core.exceptions import StoreUnavailableError


API_VERSION = "0.1.0"

# Configure logging
_logging_config = get_logging_config()
logging.basicConfig(
    level=_logging_config.get("level", "INFO"),
    format=_logging_config.get(
        "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup:
    - Initialize the enrollment store

    Runs on shutdown:
    - Close the enrollment store
    """
    logger.info("=" * 60)
    logger.info("Starting Face Vector Authentication API")
    logger.info("=" * 60)

    logger.info("Initializing enrollment store...")
    store = get_enrollment_store()
    logger.info(f"Enrollment store ready: {store.count()} users enrolled")

    logger.info("API startup complete!")

    yield

    logger.info("Shutting down API...")
    close_enrollment_store()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=get_api_config().get("title", "Face Vector Authentication API"),
    description="""
API for face authentication by feature vector similarity.

## Features
- **Registration**: Enroll a username with a reference image and feature vector
- **Authentication**: Identify a user from a feature vector (1:N, cosine similarity)
- **User Management**: List and delete enrolled users
    """,
    version=API_VERSION,
    lifespan=lifespan,
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(registration_router)
app.include_router(authentication_router)
app.include_router(management_router)


# ============================================================
# Health Check Endpoint
# ============================================================

@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check():
    """
    Check the health of the API and its enrollment store.

    Reports "degraded" (still HTTP 200) if the store cannot be read.
    """
    try:
        enrolled_users = get_enrollment_store().count()
        status = "healthy"
    except StoreUnavailableError as e:
        logger.warning(f"Health check: enrollment store unavailable: {e.message}")
        enrolled_users = None
        status = "degraded"

    return HealthResponse(
        status=status,
        enrolled_users=enrolled_users,
        timestamp=utc_now(),
    )


@app.get("/", tags=["system"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": app.title,
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    server_config = get_server_config()

    logger.info(f"Starting server on {server_config['host']}:{server_config['port']}")
    uvicorn.run(
        "api.app:app",
        host=server_config["host"],
        port=server_config["port"],
        reload=True,
        log_level="info",
    )
