"""Test the RAG chain end to end with fake providers"""

import pytest

from concierge.exceptions import AuthRequired
from concierge.models.chat_message import MessageRole
from concierge.rag.chain import TurnState
from concierge.rag.config import rag_config
from concierge.rag.embeddings import EmbeddingIntent
from concierge.rag.prompt_templates import FALLBACK_RESPONSE, NO_CONTEXT_PLACEHOLDER


async def test_answer_comes_from_knowledge_base(rag_chain, document_service, user, chat_model):
    """Test an ingested fact is retrieved and answered"""
    await document_service.ingest(user, "amenities.txt", "Pool hours are 7am-10pm daily.")
    
    result = await rag_chain.respond_detailed(user, "What are the pool hours?")
    
    assert result.ok
    assert result.state == TurnState.DONE
    assert "7am-10pm" in result.text
    assert "Content: Pool hours are 7am-10pm daily." in chat_model.calls[0]["system_instruction"]
    assert result.sources[0]["filename"] == "amenities.txt"
    assert set(result.timings_ms) >= {"embedding_ms", "retrieval_ms", "generation_ms", "total_ms"}


async def test_no_documents_points_to_front_desk(rag_chain, user, chat_model):
    """Test an empty knowledge base still answers, with the placeholder context"""
    text = await rag_chain.respond(user, "Is there a casino?")
    
    assert "Front Desk" in text
    assert rag_config.front_desk_phone in text
    assert NO_CONTEXT_PLACEHOLDER in chat_model.calls[0]["system_instruction"]


async def test_other_users_documents_are_not_used(rag_chain, document_service, user, other_user, chat_model):
    """Test scoped retrieval ignores other tenants"""
    await document_service.ingest(other_user, "amenities.txt", "Pool hours are 7am-10pm daily.")
    
    text = await rag_chain.respond(user, "What are the pool hours?")
    
    assert "7am-10pm" not in text
    assert NO_CONTEXT_PLACEHOLDER in chat_model.calls[0]["system_instruction"]


async def test_embedding_outage_returns_fallback(rag_chain, embeddings, chat_model, user):
    """Test the fixed fallback text and the failing stage"""
    embeddings.fail = True
    
    result = await rag_chain.respond_detailed(user, "What are the pool hours?")
    
    assert result.text == FALLBACK_RESPONSE
    assert result.state == TurnState.FAILED
    assert result.failed_at == TurnState.EMBEDDING
    assert result.error_type == "EmbeddingError"
    assert chat_model.calls == []


async def test_model_failure_returns_fallback(rag_chain, chat_model, user):
    """Test a chat model failure is reported at the awaiting stage"""
    chat_model.fail = True
    
    result = await rag_chain.respond_detailed(user, "Where is breakfast served?")
    
    assert result.text == FALLBACK_RESPONSE
    assert result.failed_at == TurnState.AWAITING_MODEL


async def test_retrieval_outage_still_answers(rag_chain, document_service, vector_store, user, chat_model):
    """Test a total search failure degrades to no context"""
    await document_service.ingest(user, "amenities.txt", "Pool hours are 7am-10pm daily.")
    vector_store.fail_scoped = True
    vector_store.fail_unscoped = True
    
    result = await rag_chain.respond_detailed(user, "What are the pool hours?")
    
    assert result.ok
    assert result.degraded is True
    assert NO_CONTEXT_PLACEHOLDER in chat_model.calls[0]["system_instruction"]


async def test_query_is_embedded_as_query(rag_chain, embeddings, user):
    """Test whitespace is collapsed and the query intent is used"""
    await rag_chain.respond(user, "  pool   hours \n please ")
    
    assert embeddings.calls == [("pool hours please", EmbeddingIntent.QUERY)]


async def test_prior_turns_are_sanitized(rag_chain, chat_model, user):
    """Test history handed to the model starts at a user turn"""
    prior = [
        {"role": "model", "text": "Welcome to the hotel!"},
        {"role": "user", "text": "Hi"},
        {"role": "model", "text": "Hello, how can I help?"},
    ]
    
    await rag_chain.respond(user, "Any spa deals?", prior)
    
    history = chat_model.calls[0]["history"]
    assert [(t.role, t.text) for t in history] == [
        (MessageRole.USER, "Hi"),
        (MessageRole.MODEL, "Hello, how can I help?"),
    ]
    assert chat_model.calls[0]["message"] == "Any spa deals?"


async def test_requires_user(rag_chain):
    """Test anonymous turns are rejected"""
    with pytest.raises(AuthRequired):
        await rag_chain.respond(None, "What are the pool hours?")


async def test_model_receives_message_line_breaks(rag_chain, embeddings, chat_model, user):
    """Test the model gets the guest's message as typed, the embedding the collapsed form"""
    await rag_chain.respond(user, "  Late checkout?\nAlso, is parking free?  ")
    
    assert chat_model.calls[0]["message"] == "Late checkout?\nAlso, is parking free?"
    assert embeddings.calls[0][0] == "Late checkout? Also, is parking free?"
