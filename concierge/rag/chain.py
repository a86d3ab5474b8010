"""Main RAG pipeline chain"""

from typing import Any, Dict, Iterable, List, Optional
from dataclasses import dataclass, field
import enum
import time
import logging
from concierge.rag.embeddings import EmbeddingIntent
from concierge.rag.retriever import RetrievalResult
from concierge.rag.prompt_templates import (
    FALLBACK_RESPONSE,
    build_system_instruction,
    format_context,
    sanitize_history
)
from concierge.exceptions import AuthRequired

logger = logging.getLogger(__name__)


class TurnState(str, enum.Enum):
    """Where a chat turn is, or where it stopped"""
    IDLE = "idle"
    EMBEDDING = "embedding"
    RETRIEVING = "retrieving"
    PROMPTING = "prompting"
    AWAITING_MODEL = "awaiting_model"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ChatTurnResult:
    """Outcome of one RAG turn; ``text`` is what the guest sees"""
    text: str
    state: TurnState
    failed_at: Optional[TurnState] = None
    error_type: Optional[str] = None
    error: Optional[str] = None
    sources: List[Dict[str, Any]] = field(default_factory=list)
    degraded: bool = False
    timings_ms: Dict[str, int] = field(default_factory=dict)
    
    @property
    def ok(self) -> bool:
        return self.state == TurnState.DONE


class RAGChain:
    """Embed query -> retrieve context -> ground prompt -> ask the chat model"""
    
    def __init__(self, embeddings, retriever, generator, max_context_chars: Optional[int] = None):
        self.embeddings = embeddings
        self.retriever = retriever
        self.generator = generator
        self.max_context_chars = max_context_chars
    
    def _preprocess_query(self, query: str) -> str:
        """Trim and collapse whitespace"""
        return ' '.join((query or '').split())
    
    async def respond_detailed(
        self,
        user,
        query: str,
        prior_turns: Optional[Iterable[Any]] = None
    ) -> ChatTurnResult:
        """
        Run one RAG turn and report how it went
        
        Args:
            user: Authenticated CurrentUser; None raises AuthRequired
            query: Guest message
            prior_turns: Earlier turns of the conversation, any shape
            
        Returns:
            ChatTurnResult. Failures after authentication never raise; they
            yield the fixed fallback text with ``failed_at`` set.
        """
        if user is None:
            raise AuthRequired("User not authenticated")
        
        state = TurnState.IDLE
        timings: Dict[str, int] = {}
        start_time = time.time()
        retrieval = RetrievalResult()
        
        try:
            processed_query = self._preprocess_query(query)
            logger.info(f"[User {user.id}] Processing RAG query: {processed_query[:100]}")
            
            state = TurnState.EMBEDDING
            step = time.time()
            query_embedding = await self.embeddings.embed_async(processed_query, EmbeddingIntent.QUERY)
            timings["embedding_ms"] = int((time.time() - step) * 1000)
            
            state = TurnState.RETRIEVING
            step = time.time()
            retrieval = self.retriever.retrieve_detailed(query_embedding, user.id)
            timings["retrieval_ms"] = int((time.time() - step) * 1000)
            if retrieval.degraded:
                logger.warning(f"[User {user.id}] Retrieval degraded: {retrieval.error}")
            
            state = TurnState.PROMPTING
            context = format_context(retrieval.chunks, self.max_context_chars)
            logger.info(f"[User {user.id}] Retrieved context length: {len(context)}")
            system_instruction = build_system_instruction(context)
            history = sanitize_history(prior_turns)
            
            state = TurnState.AWAITING_MODEL
            step = time.time()
            # Model sees the guest's own line breaks; only the embedding input is collapsed
            text = await self.generator.generate_async(system_instruction, history, (query or "").strip())
            timings["generation_ms"] = int((time.time() - step) * 1000)
            timings["total_ms"] = int((time.time() - start_time) * 1000)
            
            logger.info(
                f"[User {user.id}] RAG complete: {timings['total_ms']}ms, "
                f"{len(retrieval.chunks)} chunk(s)"
            )
            return ChatTurnResult(
                text=text,
                state=TurnState.DONE,
                sources=self._sources(retrieval),
                degraded=retrieval.degraded,
                timings_ms=timings
            )
            
        except Exception as e:
            logger.error(f"[User {user.id}] RAG pipeline failed while {state.value}: {e}", exc_info=True)
            timings["total_ms"] = int((time.time() - start_time) * 1000)
            return ChatTurnResult(
                text=FALLBACK_RESPONSE,
                state=TurnState.FAILED,
                failed_at=state,
                error_type=e.__class__.__name__,
                error=str(e),
                sources=self._sources(retrieval),
                degraded=retrieval.degraded,
                timings_ms=timings
            )
    
    async def respond(
        self,
        user,
        query: str,
        prior_turns: Optional[Iterable[Any]] = None
    ) -> str:
        """Run one RAG turn and return only the reply text"""
        result = await self.respond_detailed(user, query, prior_turns)
        return result.text
    
    @staticmethod
    def _sources(retrieval: RetrievalResult) -> List[Dict[str, Any]]:
        return [
            {
                "chunk_id": chunk.id,
                "document_id": chunk.document_id,
                "filename": chunk.filename,
                "similarity": round(chunk.similarity, 4)
            }
            for chunk in retrieval.chunks
        ]
