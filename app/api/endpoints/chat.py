from fastapi import APIRouter, Depends
from loguru import logger

from app.api.dependencies import get_chat_service
from app.models.chat import ChatRequest, ChatResponse
from app.services.chat import ChatService
from app.services.search import SearchNotConfigured
from app.utils import error_response

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(payload: ChatRequest, service: ChatService = Depends(get_chat_service)):
    """
    Answer a chat message with web citations.

    Profile learning happens in the background and never affects this response.
    """
    message = payload.message
    if not message.strip():
        return error_response(400, "message is required")

    if not service.search.is_configured:
        return error_response(500, "SERPAPI_API_KEY is missing")

    try:
        return await service.answer(message, payload.history)
    except SearchNotConfigured as e:
        return error_response(500, str(e))
    except Exception as e:
        logger.exception(f"Chat request failed: {e}")
        return error_response(500, "Failed to complete request")
