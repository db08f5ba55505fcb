"""API v1 router configuration."""

from fastapi import APIRouter

from pain_tracker.api.v1.endpoints import auth, feedback, health, pain_entries, users

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router)
api_router.include_router(pain_entries.router)
api_router.include_router(feedback.router)
