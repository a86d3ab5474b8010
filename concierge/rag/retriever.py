"""Semantic search retriever"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
import logging
from concierge.rag.config import rag_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievedChunk:
    """A chunk returned by similarity search"""
    id: str
    document_id: Optional[int]
    content: str
    similarity: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    
    @property
    def filename(self) -> Optional[str]:
        return self.metadata.get("filename")


@dataclass
class RetrievalResult:
    """Chunks plus how they were obtained"""
    chunks: List[RetrievedChunk] = field(default_factory=list)
    scoped: bool = True
    degraded: bool = False
    error: Optional[str] = None
    
    def __len__(self):
        return len(self.chunks)


class Retriever:
    """Top-K similarity retrieval scoped to the requesting user"""
    
    def __init__(self, vector_store, top_k: int = None, min_score: float = None):
        self.vector_store = vector_store
        self.top_k = top_k if top_k is not None else rag_config.top_k
        self.min_score = min_score if min_score is not None else rag_config.min_score
    
    def _to_chunks(self, rows: List[Dict[str, Any]], top_k: int) -> List[RetrievedChunk]:
        """Validate raw store rows, enforce threshold, order and count"""
        chunks = []
        for row in rows or []:
            try:
                similarity = float(row["similarity"])
                content = row["content"]
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Dropping malformed match row: {row!r}")
                continue
            if not isinstance(content, str) or not content.strip():
                continue
            if similarity < self.min_score:
                continue
            chunks.append(RetrievedChunk(
                id=str(row.get("id")),
                document_id=row.get("document_id"),
                content=content,
                similarity=similarity,
                metadata=dict(row.get("metadata") or {})
            ))
        
        chunks.sort(key=lambda c: c.similarity, reverse=True)
        return chunks[:top_k]
    
    def retrieve_detailed(
        self,
        query_embedding: List[float],
        user_id: str,
        top_k: Optional[int] = None
    ) -> RetrievalResult:
        """
        Retrieve the most similar chunks for a user
        
        Falls back to one unscoped search when the scoped search fails, and to
        an empty result when that fails too. Never raises.
        
        Args:
            query_embedding: Query vector
            user_id: Owner whose chunks are searched
            top_k: Number of chunks to return (default: from config)
            
        Returns:
            RetrievalResult with chunks ordered by descending similarity
        """
        top_k = top_k if top_k is not None else self.top_k
        if top_k <= 0:
            return RetrievalResult()
        
        logger.info(f"Searching top-{top_k} chunks for user {user_id} (min_score: {self.min_score})")
        
        try:
            rows = self.vector_store.match_documents(
                query_embedding=query_embedding,
                match_threshold=self.min_score,
                match_count=top_k,
                user_id=user_id
            )
            chunks = self._to_chunks(rows, top_k)
            logger.info(f"Search successful. Found {len(chunks)} match(es).")
            return RetrievalResult(chunks=chunks, scoped=True)
        except Exception as e:
            logger.warning(f"Scoped search failed ({e}); retrying without user filter")
            scoped_error = str(e)
        
        try:
            rows = self.vector_store.match_documents(
                query_embedding=query_embedding,
                match_threshold=self.min_score,
                match_count=top_k
            )
            chunks = self._to_chunks(rows, top_k)
            logger.warning(f"Unscoped fallback search returned {len(chunks)} match(es)")
            return RetrievalResult(chunks=chunks, scoped=False, degraded=True, error=scoped_error)
        except Exception as e:
            logger.error(f"Fallback search failed: {e}")
            return RetrievalResult(chunks=[], scoped=False, degraded=True, error=str(e))
    
    def retrieve(
        self,
        query_embedding: List[float],
        user_id: str,
        top_k: Optional[int] = None
    ) -> List[RetrievedChunk]:
        """Retrieve chunks only, see retrieve_detailed()"""
        return self.retrieve_detailed(query_embedding, user_id, top_k).chunks
