"""RAG system configuration"""

from concierge.config import settings
from dataclasses import dataclass


@dataclass
class RAGConfig:
    """Configuration for RAG system"""
    
    # Gemini Settings
    google_api_key: str = settings.GOOGLE_API_KEY
    gemini_model: str = settings.GEMINI_MODEL
    gemini_embedding_model: str = settings.GEMINI_EMBEDDING_MODEL
    gemini_max_tokens: int = settings.GEMINI_MAX_TOKENS
    gemini_temperature: float = settings.GEMINI_TEMPERATURE
    
    # Qdrant Settings
    qdrant_url: str = settings.QDRANT_URL
    qdrant_api_key: str = settings.QDRANT_API_KEY
    qdrant_collection: str = settings.QDRANT_COLLECTION
    # Must match between document and query embeddings
    vector_size: int = settings.GEMINI_EMBEDDING_DIMENSIONS
    
    # RAG Settings
    top_k: int = settings.RAG_TOP_K
    min_score: float = settings.RAG_MIN_SCORE
    max_embed_chars: int = settings.RAG_MAX_EMBED_CHARS
    max_context_chars: int = settings.RAG_MAX_CONTEXT_CHARS
    enable_cache: bool = settings.RAG_ENABLE_CACHE
    
    # Redis Cache
    redis_url: str = settings.REDIS_URL
    cache_ttl: int = settings.RAG_CACHE_TTL
    
    # Persona
    hotel_name: str = settings.HOTEL_NAME
    concierge_name: str = settings.CONCIERGE_NAME
    front_desk_phone: str = settings.FRONT_DESK_PHONE


# Global RAG config instance
rag_config = RAGConfig()
