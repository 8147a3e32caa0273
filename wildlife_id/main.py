"""
Wildlife Species Identification API

FastAPI application for identifying wildlife species in observation photos
and recording observations.

This is the main entry point for the application.

Usage:
    uvicorn wildlife_id.main:app --reload
    uvicorn wildlife_id.main:app --host 0.0.0.0 --port 8000

Production:
    gunicorn wildlife_id.main:app -k uvicorn.workers.UvicornWorker -w 4
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wildlife_id.core.config import get_settings
from wildlife_id.api.routes import (
    health_router,
    identify_router,
    observations_router,
    species_router,
)
from wildlife_id.api.routes.health import set_startup_time
from wildlife_id.services.identification_service import (
    get_identification_service,
    shutdown_identification_service,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup:
    - Build the identification pipeline and its shared HTTP client

    Runs on shutdown:
    - Close the shared HTTP client
    """
    logger.info("Starting Wildlife Species Identification API...")

    # Record startup time
    set_startup_time()

    try:
        service = get_identification_service()
        logger.info(f"Identification pipeline ready: {service.describe()}")
    except Exception as e:
        logger.error(f"Failed to initialize identification service: {e}")
        # Continue startup - the service is created lazily on first request

    logger.info("Application startup complete")

    yield

    # Cleanup on shutdown
    logger.info("Shutting down Wildlife Species Identification API...")
    await shutdown_identification_service()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## Wildlife Species Identification API

Identifies wildlife species in observation photos and stores observations.

### Features

- **Tiered Identification**: Three online image classifiers tried in order
- **Local Fallback**: Heuristic suggestions when no classifier is reachable
- **Enhanced Mode**: Scientific-name enrichment and a narrative explanation
- **Observations**: Submission with automatic identification, listing and statistics

### API Endpoints

- `POST /api/v1/identify` - Identify species in an image
- `GET /api/v1/identify/test?imageUrl=...` - Diagnostic identification
- `POST /api/v1/observations` - Submit an observation
- `GET /api/v1/observations` - List observations
- `GET /api/v1/observations/stats` - Observation statistics
- `GET /api/v1/species` - Species reference table
- `GET /api/v1/health` - Health check
- `GET /api/v1/health/ready` - Detailed readiness check

### Confidence

Confidence values from the local fallback are a plausibility ranking, not a
model probability; such results are flagged with `is_local_fallback`.
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
            "details": str(exc) if settings.debug else None
        }
    )


# Include routers
app.include_router(health_router, prefix=settings.api_prefix)
app.include_router(identify_router, prefix=settings.api_prefix)
app.include_router(observations_router, prefix=settings.api_prefix)
app.include_router(species_router, prefix=settings.api_prefix)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "documentation": "/docs",
        "health_check": f"{settings.api_prefix}/health",
        "identification_endpoint": f"{settings.api_prefix}/identify"
    }


# Entry point for running with Python
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wildlife_id.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers
    )
