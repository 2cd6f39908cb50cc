"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formcoach.config import get_settings
from formcoach.api import api_router
from formcoach.sessions import get_registry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}")
    yield
    get_registry().clear()
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
    Exercise Form Coach API

    Real-time exercise form feedback from a stream of body keypoints.
    The client runs pose estimation and posts one frame of 33 MediaPipe
    Pose landmarks at a time; the server answers with feedback text,
    per-step completion flags and a one-off completion event.

    ## Step Principle

    **Step 0 (descent / flex) → Step 1 (return / extension) = complete**

    Steps never un-complete within a session; only an exercise switch or a
    dismissal starts over.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0",
        "active_sessions": len(get_registry()),
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("formcoach.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
