from fastapi import APIRouter
from .endpoints.health import router as health_router
from .endpoints.context import router as context_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(context_router, prefix="/context", tags=["context"])
