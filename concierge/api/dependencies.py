"""FastAPI dependency providers: one place that wires services together"""

from fastapi import Depends
from sqlalchemy.orm import Session

from concierge.database.session import get_db
from concierge.rag.chain import RAGChain
from concierge.rag.config import rag_config
from concierge.rag.embeddings import get_embeddings_service
from concierge.rag.generator import get_generator
from concierge.rag.retriever import Retriever
from concierge.rag.vector_store import get_vector_store
from concierge.services.chat_service import ChatService
from concierge.services.conversation_service import ConversationService
from concierge.services.document_service import DocumentService


def get_embeddings():
    return get_embeddings_service()


def get_vector_index():
    return get_vector_store()


def get_chat_model():
    return get_generator()


def get_rag_chain(
    embeddings=Depends(get_embeddings),
    vector_index=Depends(get_vector_index),
    chat_model=Depends(get_chat_model)
) -> RAGChain:
    return RAGChain(
        embeddings=embeddings,
        retriever=Retriever(vector_index),
        generator=chat_model,
        max_context_chars=rag_config.max_context_chars
    )


def get_document_service(
    db: Session = Depends(get_db),
    embeddings=Depends(get_embeddings),
    vector_index=Depends(get_vector_index)
) -> DocumentService:
    return DocumentService(db, embeddings, vector_index)


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    return ConversationService(db)


def get_chat_service(
    db: Session = Depends(get_db),
    rag_chain: RAGChain = Depends(get_rag_chain)
) -> ChatService:
    return ChatService(db, rag_chain)
