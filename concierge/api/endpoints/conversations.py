"""Conversation history endpoints"""

from fastapi import APIRouter, Depends
from typing import List
import logging

from concierge.api.dependencies import get_conversation_service
from concierge.schemas.conversation import (
    ConversationGroupsResponse,
    ConversationRename,
    ConversationResponse,
    MessageResponse
)
from concierge.security.auth import CurrentUser, require_user
from concierge.services.conversation_service import ConversationService, group_conversations

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/conversations", response_model=ConversationGroupsResponse)
async def list_conversations(
    user: CurrentUser = Depends(require_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """Conversations grouped into Today / Yesterday / Previous 7 Days / Older"""
    conversations = service.list_conversations(user.id)
    groups = group_conversations(conversations)
    return ConversationGroupsResponse(
        total=len(conversations),
        groups={
            name: [ConversationResponse.model_validate(c) for c in items]
            for name, items in groups.items()
        }
    )


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    conversation_id: int,
    user: CurrentUser = Depends(require_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """Messages of a conversation, oldest first"""
    conversation = service.get_conversation(user.id, conversation_id)
    return [MessageResponse.model_validate(m) for m in service.load_messages(conversation.id)]


@router.patch("/conversations/{conversation_id}", response_model=ConversationResponse)
async def rename_conversation(
    conversation_id: int,
    request: ConversationRename,
    user: CurrentUser = Depends(require_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """Rename a conversation"""
    conversation = service.rename_conversation(user.id, conversation_id, request.title)
    return ConversationResponse.model_validate(conversation)


@router.delete("/conversations/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: int,
    user: CurrentUser = Depends(require_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """Delete a conversation and its messages"""
    service.delete_conversation(user.id, conversation_id)
