"""Database models package"""

from concierge.models.document import Document, DocumentStatus
from concierge.models.document_chunk import DocumentChunk
from concierge.models.conversation import Conversation
from concierge.models.chat_message import ChatMessage, MessageRole
from concierge.models.analytics import Analytics

__all__ = [
    "Document",
    "DocumentStatus",
    "DocumentChunk",
    "Conversation",
    "ChatMessage",
    "MessageRole",
    "Analytics"
]
