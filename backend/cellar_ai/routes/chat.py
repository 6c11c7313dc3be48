"""Chat with the sommelier assistant."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from cellar_ai.models.api_models import ChatRequest, ChatResponse
from cellar_ai.routes.deps import get_chat_service, require_user_id
from cellar_ai.services.chat_service import ChatService
from cellar_ai.services.llm_exceptions import LLMUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user_id: str = Depends(require_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    try:
        return await chat_service.respond(user_id, request.message, request.history)
    except LLMUnavailableError as e:
        logger.error(f"Chat failed for user {user_id}: {e}")
        raise HTTPException(
            status_code=503,
            detail="The assistant is temporarily unavailable. Please try again.",
        )
