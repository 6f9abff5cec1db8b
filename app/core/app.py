from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.dependencies import get_chat_service
from app.api.main import api_router
from app.services.profile_store import profile_store
from app.utils import error_response

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).

    Building the chat service selects the LLM provider, so a missing API key
    stops startup here instead of failing on the first request.
    """
    chat_service = get_chat_service()
    await profile_store.ensure_profile(settings.DEFAULT_USER_ID)
    yield
    try:
        await chat_service.drain()
        await chat_service.gateway.close()
        await chat_service.search.close()
    except Exception as exc:
        logger.warning(f"Failed to close HTTP clients: {exc}")
    try:
        await profile_store.close()
        logger.info("ProfileStore Redis client closed")
    except Exception as exc:
        logger.warning(f"Failed to close ProfileStore Redis client: {exc}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Personalized Dota 2 assistant with cited web answers",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Keep the {"error": ...} body for requests FastAPI cannot parse."""
    logger.warning(f"Invalid request body on {request.method} {request.url.path}: {exc.errors()}")
    return error_response(400, "Invalid request body")
