"""API router configuration."""

from fastapi import APIRouter

from anischedule.modules.schedule.interfaces.router import router as schedule_router

api_router = APIRouter()

# Schedule + AniList passthrough
api_router.include_router(schedule_router)
