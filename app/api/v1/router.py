"""Main API router for v1."""
from fastapi import APIRouter

from app.api.v1.endpoints import history, polls

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(polls.router, prefix="/polls", tags=["Polls"])
api_router.include_router(history.router, prefix="/history", tags=["History"])
