"""API route registration."""

from fastapi import APIRouter

from azrelay.api.handlers.chat import router as chat_router
from azrelay.api.handlers.health import router as health_router
from azrelay.api.handlers.models import router as models_router

# OpenAI-compatible routes live under /v1
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(models_router, tags=["models"])
v1_router.include_router(chat_router, tags=["chat"])

# Main API router that aggregates all endpoint routers
api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(v1_router)
