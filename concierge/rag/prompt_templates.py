"""Prompt templates for the concierge"""

from typing import Any, Iterable, List, Mapping, Optional
from dataclasses import dataclass
from concierge.rag.config import rag_config
from concierge.models.chat_message import MessageRole

CONTEXT_SEPARATOR = "\n\n---\n\n"

NO_CONTEXT_PLACEHOLDER = "No specific information found in knowledge base."

SYSTEM_PROMPT = """You are "{concierge_name}", the virtual concierge for the {hotel_name}.
You have access to the following Hotel Knowledge Base to answer guest questions.

Rules:
1. ONLY answer based on the provided Knowledge Base.
2. If the answer is not in the Knowledge Base, politely suggest they contact the Front Desk at {front_desk_phone}.
3. Be warm, polite, and sophisticated, typical of a luxury hotel concierge.
4. Use emojis occasionally (e.g., 🏨, 🍹, 🌴) to feel welcoming.
5. Keep answers concise but helpful.

=== KNOWLEDGE BASE START ===
{context}
=== KNOWLEDGE BASE END ==="""

FALLBACK_RESPONSE = (
    "I apologize, I am having trouble connecting to the concierge service right now. "
    "Please contact the front desk."
)


@dataclass(frozen=True)
class ChatTurn:
    """A prior turn in the shape the chat model accepts"""
    role: MessageRole
    text: str
    
    def to_gemini(self) -> dict:
        return {"role": self.role.value, "parts": [self.text]}


def build_system_instruction(context: str, config=rag_config) -> str:
    """Build the grounding system instruction around a context block"""
    return SYSTEM_PROMPT.format(
        concierge_name=config.concierge_name,
        hotel_name=config.hotel_name,
        front_desk_phone=config.front_desk_phone,
        context=context or NO_CONTEXT_PLACEHOLDER
    )


def format_context(chunks: Iterable[Any], max_chars: Optional[int] = None) -> str:
    """
    Concatenate retrieved chunk contents into one bounded context block
    
    Args:
        chunks: Objects with a ``content`` attribute, most relevant first
        max_chars: Upper bound on the block length (default: from config)
        
    Returns:
        Context string, or the no-information placeholder when empty
    """
    max_chars = max_chars or rag_config.max_context_chars
    
    parts = []
    used = 0
    for chunk in chunks:
        entry = f"Content: {chunk.content.strip()}"
        cost = len(entry) + (len(CONTEXT_SEPARATOR) if parts else 0)
        if used + cost > max_chars:
            remaining = max_chars - used - (len(CONTEXT_SEPARATOR) if parts else 0)
            # Keep a truncated head of the first chunk rather than nothing
            if not parts and remaining > 0:
                parts.append(entry[:remaining])
            break
        parts.append(entry)
        used += cost
    
    if not parts:
        return NO_CONTEXT_PLACEHOLDER
    return CONTEXT_SEPARATOR.join(parts)


def _turn_text(turn: Any) -> str:
    """Extract text from the turn shapes callers send"""
    if isinstance(turn, Mapping):
        parts = turn.get("parts")
        if parts:
            first = parts[0]
            if isinstance(first, Mapping):
                return first.get("text") or ""
            return first if isinstance(first, str) else ""
        return turn.get("text") or turn.get("content") or ""
    return getattr(turn, "text", None) or getattr(turn, "content", None) or ""


def _turn_role(turn: Any) -> MessageRole:
    role = turn.get("role") if isinstance(turn, Mapping) else getattr(turn, "role", None)
    role = getattr(role, "value", role)
    if role in ("model", "assistant"):
        return MessageRole.MODEL
    return MessageRole.USER


def sanitize_history(turns: Optional[Iterable[Any]]) -> List[ChatTurn]:
    """
    Turn arbitrary prior turns into history the chat model accepts
    
    Every turn becomes user/model (unknown roles count as user), empty turns
    are dropped, and the history starts at the first user turn. Without any
    user turn the history is empty.
    """
    formatted = []
    for turn in turns or []:
        text = _turn_text(turn)
        if not isinstance(text, str) or not text.strip():
            continue
        formatted.append(ChatTurn(role=_turn_role(turn), text=text))
    
    for index, turn in enumerate(formatted):
        if turn.role == MessageRole.USER:
            return formatted[index:]
    return []
