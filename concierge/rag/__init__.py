"""RAG module - Retrieval-Augmented Generation for the concierge"""

from concierge.rag.chain import RAGChain, ChatTurnResult, TurnState
from concierge.rag.document_processor import document_processor
from concierge.rag.embeddings import EmbeddingIntent, GeminiEmbeddingsService, get_embeddings_service
from concierge.rag.generator import GeminiGenerator, get_generator
from concierge.rag.retriever import Retriever, RetrievedChunk, RetrievalResult
from concierge.rag.vector_store import QdrantVectorStore, get_vector_store

__all__ = [
    'RAGChain',
    'ChatTurnResult',
    'TurnState',
    'document_processor',
    'EmbeddingIntent',
    'GeminiEmbeddingsService',
    'get_embeddings_service',
    'GeminiGenerator',
    'get_generator',
    'Retriever',
    'RetrievedChunk',
    'RetrievalResult',
    'QdrantVectorStore',
    'get_vector_store'
]
