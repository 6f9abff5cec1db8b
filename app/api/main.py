from fastapi import APIRouter

from .endpoints.chat import router as chat_router
from .endpoints.health import router as health_router
from .endpoints.profile import router as profile_router

api_router = APIRouter(prefix="/api")


@api_router.get("/")
async def root():
    return {"message": "Dota 2 Coach API is running"}


api_router.include_router(health_router)
api_router.include_router(profile_router)
api_router.include_router(chat_router)
