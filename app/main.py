"""
Directory Monitor - Main FastAPI Application

Coordinates per-directory file-system monitoring:
- Registry of watched directories
- Watch process control (start/stop/status/refresh)
- Manifest reading and tree building
- Exclude patterns and recent change activity
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import sys

from app.utils.config import get_settings
from app.utils.errors import DirectoryMonitorError
from app.api import health, manifests, monitors, registry


# Configure logging
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level=get_settings().log_level
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(f"Starting {settings.api_title} v{settings.api_version} on port {settings.api_port}")
    logger.info(f"Registry file: {settings.get_registry_file()}")
    logger.info(f"Monitor toolkit: {settings.get_monitor_dir()}")
    logger.info(f"Platform: {sys.platform}")

    if not settings.get_monitor_dir().is_dir():
        logger.warning("Monitor toolkit directory not found; start/refresh/registry changes will fail")

    yield

    logger.info("Shutting down application...")
    logger.success("Application shut down complete")


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Per-directory file-system monitor orchestration",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DirectoryMonitorError)
async def monitor_exception_handler(request: Request, exc: DirectoryMonitorError):
    """Rejected input and operational failures."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
        }
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(registry.router, prefix="/api/registry", tags=["Registry"])
app.include_router(monitors.router, prefix="/api", tags=["Monitors"])
app.include_router(manifests.router, prefix="/api", tags=["Manifests"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Directory Monitor",
        "version": settings.api_version,
        "status": "operational",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower()
    )
