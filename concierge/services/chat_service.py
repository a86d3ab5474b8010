"""One guest chat turn: persistence around the RAG chain"""

from typing import Optional
from dataclasses import dataclass
import logging

from sqlalchemy.orm import Session

from concierge.models.chat_message import MessageRole
from concierge.rag.chain import ChatTurnResult
from concierge.services.conversation_service import ConversationService, derive_title
from concierge.services.analytics_service import AnalyticsService
from concierge.exceptions import AuthRequired, EmptyContent, StorageWriteError

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    """What the caller shows, plus what happened behind it"""
    reply: str
    conversation_id: Optional[int]
    title: Optional[str]
    persisted: bool
    result: ChatTurnResult


class ChatService:
    """Runs a turn: lazy conversation, save user turn, answer, save reply, log"""
    
    def __init__(self, db: Session, rag_chain):
        self.db = db
        self.rag_chain = rag_chain
        self.conversations = ConversationService(db)
        self.analytics = AnalyticsService(db)
    
    async def send_message(
        self,
        user,
        text: str,
        conversation_id: Optional[int] = None
    ) -> ChatReply:
        """
        Answer a guest message inside a conversation
        
        Persistence failures are logged and reflected in ``persisted``; the
        reply is returned regardless.
        
        Raises:
            AuthRequired: No user
            EmptyContent: Blank message
            ConversationNotFound: conversation_id not owned by the user
        """
        if user is None:
            raise AuthRequired()
        text = (text or "").strip()
        if not text:
            raise EmptyContent("Message is empty.")
        
        prior_turns = []
        conversation = None
        if conversation_id is not None:
            conversation = self.conversations.get_conversation(user.id, conversation_id)
            prior_turns = [
                {"role": message.role, "text": message.content}
                for message in self.conversations.load_messages(conversation.id)
            ]
        else:
            try:
                conversation = self.conversations.create_conversation(user.id, derive_title(text))
            except StorageWriteError as e:
                logger.error(f"[User {user.id}] Failed to create conversation, continuing unsaved: {e}")
        
        persisted = conversation is not None
        # Capture before any later rollback expires the instance
        active_id = conversation.id if conversation else None
        title = conversation.title if conversation else None
        
        if active_id is not None:
            saved = self.conversations.append_message(active_id, user.id, MessageRole.USER, text)
            if not saved.ok:
                logger.warning(f"Message not saved to history: {saved.error}")
                persisted = False
        
        result = await self.rag_chain.respond_detailed(user, text, prior_turns)
        
        if active_id is not None:
            saved = self.conversations.append_message(active_id, user.id, MessageRole.MODEL, result.text)
            if not saved.ok:
                logger.warning(f"AI response not saved to history: {saved.error}")
                persisted = False
        
        self.analytics.log_query(
            user.id,
            text,
            result.text,
            metadata={
                "conversation_id": active_id,
                "state": result.state.value,
                "failed_at": result.failed_at.value if result.failed_at else None,
                "error_type": result.error_type,
                "degraded_retrieval": result.degraded,
                "sources": result.sources,
                "timings_ms": result.timings_ms
            }
        )
        
        return ChatReply(
            reply=result.text,
            conversation_id=active_id,
            title=title,
            persisted=persisted,
            result=result
        )
