from fastapi import APIRouter

from .health import router as health_router
from .letters import router as letters_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(letters_router)
