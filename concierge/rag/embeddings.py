"""Google Gemini embeddings service"""

from typing import List, Optional
import google.generativeai as genai
import redis
import asyncio
import enum
import json
import hashlib
import logging
from numbers import Real
from concierge.rag.config import rag_config, RAGConfig
from concierge.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingIntent(str, enum.Enum):
    """What the vector will be used for; values are Gemini task types"""
    DOCUMENT = "retrieval_document"
    QUERY = "retrieval_query"


class GeminiEmbeddingsService:
    """Turns text into fixed-length vectors with the Gemini embedding API"""
    
    def __init__(self, config: RAGConfig = rag_config, cache_enabled: Optional[bool] = None):
        self.api_key = config.google_api_key
        self.dimensions = config.vector_size
        self.cache_ttl = config.cache_ttl
        
        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            logger.warning("GOOGLE_API_KEY is not set; embedding requests will fail")
        
        # Ensure embedding model has "models/" prefix
        model_name = config.gemini_embedding_model
        if not model_name.startswith("models/"):
            model_name = f"models/{model_name}"
        self.model_name = model_name
        
        logger.info(f"Initializing Gemini embeddings with model: {self.model_name} ({self.dimensions}d)")
        
        # Redis cache for embeddings
        self.cache_enabled = config.enable_cache if cache_enabled is None else cache_enabled
        self.redis_client = None
        if self.cache_enabled:
            try:
                self.redis_client = redis.from_url(
                    config.redis_url,
                    decode_responses=False  # Store bytes for embeddings
                )
                logger.info("Redis cache enabled for embeddings")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis cache: {e}")
                self.cache_enabled = False
    
    def _get_cache_key(self, text: str, intent: EmbeddingIntent) -> str:
        """Generate cache key for text"""
        digest = hashlib.md5(text.encode()).hexdigest()
        return f"emb:gemini:{self.model_name}:{self.dimensions}:{intent.value}:{digest}"
    
    def _get_from_cache(self, text: str, intent: EmbeddingIntent) -> Optional[List[float]]:
        """Get embedding from cache"""
        if not self.cache_enabled:
            return None
        
        try:
            cached = self.redis_client.get(self._get_cache_key(text, intent))
            if cached:
                embedding = self._validate({"embedding": json.loads(cached)})
                logger.debug("Cache hit for embedding")
                return embedding
        except EmbeddingError as e:
            logger.warning(f"Ignoring malformed cached embedding: {e}")
        except Exception as e:
            logger.warning(f"Cache retrieval error: {e}")
        
        return None
    
    def _save_to_cache(self, text: str, intent: EmbeddingIntent, embedding: List[float]):
        """Save embedding to cache"""
        if not self.cache_enabled:
            return
        
        try:
            self.redis_client.setex(
                self._get_cache_key(text, intent),
                self.cache_ttl,
                json.dumps(embedding)
            )
        except Exception as e:
            logger.warning(f"Cache save error: {e}")
    
    def _validate(self, result) -> List[float]:
        """Pull the vector out of an API response, rejecting anything malformed"""
        try:
            values = result["embedding"]
        except (KeyError, TypeError):
            raise EmbeddingError("Gemini API returned empty embedding")
        
        if not isinstance(values, (list, tuple)) or len(values) != self.dimensions:
            size = len(values) if isinstance(values, (list, tuple)) else type(values).__name__
            raise EmbeddingError(
                f"Gemini API returned malformed embedding (expected {self.dimensions} values, got {size})"
            )
        if not all(isinstance(v, Real) and not isinstance(v, bool) for v in values):
            raise EmbeddingError("Gemini API returned non-numeric embedding values")
        
        return [float(v) for v in values]
    
    def embed(self, text: str, intent: EmbeddingIntent = EmbeddingIntent.DOCUMENT) -> List[float]:
        """
        Generate an embedding for a single text
        
        Args:
            text: Text to embed, already truncated by the caller
            intent: Document indexing or query lookup
            
        Returns:
            List of floats of length ``dimensions``
            
        Raises:
            EmbeddingError: Missing API key, empty text, provider failure
                or malformed output
        """
        if not self.api_key:
            logger.error("Missing GOOGLE_API_KEY")
            raise EmbeddingError("Missing Gemini API key")
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        
        cached = self._get_from_cache(text, intent)
        if cached:
            return cached
        
        logger.info(f"Generating embedding ({len(text)} chars) | Type: {intent.value}")
        try:
            result = genai.embed_content(
                model=self.model_name,
                content=text,
                task_type=intent.value,
                output_dimensionality=self.dimensions
            )
        except Exception as e:
            logger.error(f"Embedding generation failed: {e}")
            raise EmbeddingError(f"Embedding provider error: {e}") from e
        
        embedding = self._validate(result)
        self._save_to_cache(text, intent, embedding)
        
        logger.debug(f"Embedding successful ({len(embedding)}d)")
        return embedding
    
    async def embed_async(self, text: str, intent: EmbeddingIntent = EmbeddingIntent.DOCUMENT) -> List[float]:
        """
        Generate an embedding without blocking the event loop
        
        The Gemini SDK call is synchronous, so it runs in a worker thread.
        """
        return await asyncio.to_thread(self.embed, text, intent)


_embeddings_service: Optional[GeminiEmbeddingsService] = None


def get_embeddings_service() -> GeminiEmbeddingsService:
    """Get the process-wide embeddings service, creating it on first use"""
    global _embeddings_service
    if _embeddings_service is None:
        _embeddings_service = GeminiEmbeddingsService()
    return _embeddings_service
