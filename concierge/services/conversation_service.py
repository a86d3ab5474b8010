"""Conversation history service"""

from typing import Dict, List, Optional
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from concierge.models.conversation import Conversation, DEFAULT_CONVERSATION_TITLE
from concierge.models.chat_message import ChatMessage, MessageRole
from concierge.exceptions import ConversationNotFound, StorageWriteError

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 30
TITLE_ELLIPSIS = "..."

GROUP_TODAY = "Today"
GROUP_YESTERDAY = "Yesterday"
GROUP_PREVIOUS_7_DAYS = "Previous 7 Days"
GROUP_OLDER = "Older"
GROUP_ORDER = (GROUP_TODAY, GROUP_YESTERDAY, GROUP_PREVIOUS_7_DAYS, GROUP_OLDER)


@dataclass
class SaveResult:
    """Outcome of a message append"""
    ok: bool
    error: Optional[str] = None
    message: Optional[ChatMessage] = None


def derive_title(first_message: str) -> str:
    """Conversation title from the first user message"""
    text = (first_message or "").strip()
    if not text:
        return DEFAULT_CONVERSATION_TITLE
    if len(text) > TITLE_MAX_CHARS:
        return text[:TITLE_MAX_CHARS] + TITLE_ELLIPSIS
    return text


def _as_local(moment: datetime) -> datetime:
    # Stored timestamps are naive UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone()


def group_conversations(
    conversations: List[Conversation],
    now: Optional[datetime] = None
) -> Dict[str, List[Conversation]]:
    """
    Bucket conversations by ``updated_at`` using local-midnight boundaries
    
    Args:
        conversations: Conversations, usually newest first
        now: Reference moment (naive means local time); defaults to now
        
    Returns:
        Mapping with all four groups, in display order
    """
    groups = {name: [] for name in GROUP_ORDER}
    
    reference = (now or datetime.now()).astimezone()
    today = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    yesterday = today - timedelta(days=1)
    last_week = today - timedelta(days=7)
    
    for conversation in conversations or []:
        updated = _as_local(conversation.updated_at or conversation.created_at)
        if updated >= today:
            groups[GROUP_TODAY].append(conversation)
        elif updated >= yesterday:
            groups[GROUP_YESTERDAY].append(conversation)
        elif updated >= last_week:
            groups[GROUP_PREVIOUS_7_DAYS].append(conversation)
        else:
            groups[GROUP_OLDER].append(conversation)
    
    return groups


class ConversationService:
    """Persist and reload conversations and their messages"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def create_conversation(self, user_id: str, title: str = DEFAULT_CONVERSATION_TITLE) -> Conversation:
        """
        Create a conversation
        
        Raises:
            StorageWriteError: Insert failed
        """
        now = datetime.utcnow()
        conversation = Conversation(
            user_id=user_id,
            title=title or DEFAULT_CONVERSATION_TITLE,
            created_at=now,
            updated_at=now
        )
        try:
            self.db.add(conversation)
            self.db.commit()
            self.db.refresh(conversation)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating conversation: {e}")
            raise StorageWriteError(f"Could not create conversation: {e}") from e
        
        logger.info(f"Created conversation {conversation.id} for user {user_id}")
        return conversation
    
    def list_conversations(self, user_id: str) -> List[Conversation]:
        """User's conversations, most recently updated first"""
        return (
            self.db.query(Conversation)
            .filter(Conversation.user_id == user_id)
            .order_by(desc(Conversation.updated_at), desc(Conversation.id))
            .all()
        )
    
    def get_conversation(self, user_id: str, conversation_id: int) -> Conversation:
        """Owned conversation or ConversationNotFound"""
        conversation = self.db.query(Conversation).filter(
            Conversation.id == conversation_id,
            Conversation.user_id == user_id
        ).first()
        if not conversation:
            raise ConversationNotFound(f"Conversation {conversation_id} not found")
        return conversation
    
    def load_messages(self, conversation_id: int) -> List[ChatMessage]:
        """Messages in creation order"""
        messages = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .all()
        )
        logger.debug(f"Fetched {len(messages)} message(s) for conversation {conversation_id}")
        return messages
    
    def append_message(
        self,
        conversation_id: int,
        user_id: str,
        role: MessageRole,
        text: str
    ) -> SaveResult:
        """
        Append a message and touch the conversation's ``updated_at``
        
        Never raises; a failed write is logged and reported in the result.
        """
        role = MessageRole(getattr(role, "value", role))
        logger.info(f"Saving message to {conversation_id}: {role.value}")
        try:
            now = datetime.utcnow()
            message = ChatMessage(
                conversation_id=conversation_id,
                user_id=user_id,
                role=role.value,
                content=text,
                created_at=now
            )
            self.db.add(message)
            self.db.query(Conversation).filter(
                Conversation.id == conversation_id
            ).update({Conversation.updated_at: now}, synchronize_session=False)
            self.db.commit()
            self.db.refresh(message)
            return SaveResult(ok=True, message=message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving chat message: {e}")
            return SaveResult(ok=False, error=str(e))
    
    def rename_conversation(self, user_id: str, conversation_id: int, title: str) -> Conversation:
        """Change a conversation title"""
        conversation = self.get_conversation(user_id, conversation_id)
        try:
            conversation.title = title.strip() or DEFAULT_CONVERSATION_TITLE
            conversation.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(conversation)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating conversation title: {e}")
            raise StorageWriteError(f"Could not rename conversation: {e}") from e
        return conversation
    
    def delete_conversation(self, user_id: str, conversation_id: int) -> None:
        """Delete a conversation and its messages"""
        conversation = self.get_conversation(user_id, conversation_id)
        try:
            self.db.delete(conversation)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting conversation: {e}")
            raise StorageWriteError(f"Could not delete conversation: {e}") from e
        logger.info(f"Deleted conversation {conversation_id}")
