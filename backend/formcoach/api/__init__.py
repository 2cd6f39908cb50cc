"""API routes."""

from fastapi import APIRouter

from formcoach.api import exercises, sessions

api_router = APIRouter()

api_router.include_router(exercises.router, prefix="/exercises", tags=["Exercises"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
