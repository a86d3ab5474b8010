"""Chat endpoint"""

from fastapi import APIRouter, Depends
import logging

from concierge.api.dependencies import get_chat_service
from concierge.schemas.conversation import ChatRequest, ChatResponse
from concierge.security.auth import CurrentUser, require_user
from concierge.services.chat_service import ChatService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user: CurrentUser = Depends(require_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Send a guest message to the concierge
    
    Omit **conversation_id** to start a new conversation; its title is
    derived from this message.
    """
    reply = await chat_service.send_message(user, request.message, request.conversation_id)
    return ChatResponse(
        reply=reply.reply,
        conversation_id=reply.conversation_id,
        title=reply.title,
        persisted=reply.persisted
    )
