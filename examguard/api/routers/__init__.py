"""API sub-routers assembled into a single api_router."""

from fastapi import APIRouter

from examguard.api.routers.health import router as health_router
from examguard.api.routers.sessions import history_router
from examguard.api.routers.sessions import router as sessions_router
from examguard.api.routers.verification import router as verification_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(verification_router, prefix="/verification", tags=["verification"])
api_router.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
api_router.include_router(history_router, prefix="/users", tags=["history"])
