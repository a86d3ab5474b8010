"""Conversation and chat schemas"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class ConversationResponse(BaseModel):
    """Conversation summary"""
    id: int
    title: str
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class ConversationGroupsResponse(BaseModel):
    """Conversations bucketed for the sidebar"""
    total: int
    groups: Dict[str, List[ConversationResponse]]


class ConversationRename(BaseModel):
    """Rename request"""
    title: str = Field(..., min_length=1, max_length=255)


class MessageResponse(BaseModel):
    """Stored chat turn"""
    id: int
    role: str
    content: str
    created_at: datetime
    
    class Config:
        from_attributes = True


class ChatRequest(BaseModel):
    """Guest message"""
    message: str = Field(..., min_length=1, max_length=4000)
    conversation_id: Optional[int] = None


class ChatResponse(BaseModel):
    """Concierge reply"""
    reply: str
    conversation_id: Optional[int] = None
    title: Optional[str] = None
    persisted: bool
