"""Pytest configuration and fixtures"""

import os

# Configure before the concierge package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_API_KEY"] = ""
os.environ["RAG_ENABLE_CACHE"] = "false"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["QDRANT_URL"] = "http://127.0.0.1:1"

import hashlib
import math
import re

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from concierge.database.base import Base
from concierge.database.session import get_db
from concierge.exceptions import EmbeddingError, GenerationError
from concierge.rag.chain import RAGChain
from concierge.rag.prompt_templates import NO_CONTEXT_PLACEHOLDER
from concierge.rag.config import rag_config
from concierge.rag.retriever import Retriever
from concierge.security.auth import CurrentUser, create_access_token
from concierge.services.document_service import DocumentService

# Test database: one shared in-memory connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DIMENSIONS = 768


class FakeEmbeddings:
    """Deterministic bag-of-words vectors, so shared words mean similarity"""
    
    def __init__(self, dimensions: int = DIMENSIONS):
        self.dimensions = dimensions
        self.fail = False
        self.calls = []
    
    def embed(self, text, intent):
        self.calls.append((text, intent))
        if self.fail:
            raise EmbeddingError("Embedding provider error: simulated outage")
        vector = [0.0] * self.dimensions
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dimensions] += 1.0
        if not any(vector):
            vector[0] = 1.0
        return vector
    
    async def embed_async(self, text, intent):
        return self.embed(text, intent)


def cosine(a, b):
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeVectorStore:
    """In-memory stand-in for the Qdrant store"""
    
    def __init__(self):
        self.points = {}
        self.match_calls = []
        self.fail_scoped = False
        self.fail_unscoped = False
        self.fail_upsert = False
        self.deleted_documents = []
    
    def health_check(self):
        return True
    
    def upsert_chunk(self, point_id, vector, payload):
        if self.fail_upsert:
            raise RuntimeError("vector index unavailable")
        self.points[point_id] = (vector, dict(payload))
    
    def match_documents(self, query_embedding, match_threshold, match_count, user_id=None):
        self.match_calls.append({"user_id": user_id, "threshold": match_threshold, "count": match_count})
        if user_id is not None and self.fail_scoped:
            raise RuntimeError("function match_documents(p_user_id) does not exist")
        if user_id is None and self.fail_unscoped:
            raise RuntimeError("vector index unavailable")
        rows = []
        for point_id, (vector, payload) in self.points.items():
            if user_id is not None and payload.get("user_id") != user_id:
                continue
            score = cosine(query_embedding, vector)
            if score >= match_threshold:
                rows.append({
                    "id": point_id,
                    "document_id": payload.get("document_id"),
                    "user_id": payload.get("user_id"),
                    "content": payload.get("content"),
                    "metadata": payload.get("metadata"),
                    "similarity": score
                })
        rows.sort(key=lambda r: r["similarity"], reverse=True)
        return rows[:match_count]
    
    def delete_document_points(self, document_id):
        self.deleted_documents.append(document_id)
        self.points = {
            pid: point for pid, point in self.points.items()
            if point[1].get("document_id") != document_id
        }
    
    def delete_points(self, point_ids):
        for pid in point_ids:
            self.points.pop(pid, None)


class FakeChatModel:
    """Answers from the knowledge base block of the system instruction"""
    
    def __init__(self):
        self.fail = False
        self.calls = []
    
    async def generate_async(self, system_instruction, history, message):
        self.calls.append({
            "system_instruction": system_instruction,
            "history": list(history),
            "message": message
        })
        if self.fail:
            raise GenerationError("Chat model error: simulated outage")
        knowledge = system_instruction.split("=== KNOWLEDGE BASE START ===")[1]
        knowledge = knowledge.split("=== KNOWLEDGE BASE END ===")[0].strip()
        if NO_CONTEXT_PLACEHOLDER in knowledge:
            return (
                "I'm afraid I don't have that information. Please contact the "
                f"Front Desk at {rag_config.front_desk_phone}."
            )
        return f"Certainly! {knowledge.replace('Content: ', '')}"


@pytest.fixture(scope="function")
def db():
    """Database session fixture"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user():
    return CurrentUser(id="guest-1", email="guest@example.com")


@pytest.fixture
def other_user():
    return CurrentUser(id="guest-2", email="other@example.com")


@pytest.fixture
def embeddings():
    return FakeEmbeddings()


@pytest.fixture
def vector_store():
    return FakeVectorStore()


@pytest.fixture
def chat_model():
    return FakeChatModel()


@pytest.fixture
def rag_chain(embeddings, vector_store, chat_model):
    return RAGChain(embeddings, Retriever(vector_store), chat_model)


@pytest.fixture
def document_service(db, embeddings, vector_store):
    return DocumentService(db, embeddings, vector_store)


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture(scope="function")
def client(db, embeddings, vector_store, chat_model):
    """Test client fixture"""
    from concierge.main import app
    from concierge.api import dependencies
    
    def override_get_db():
        yield db
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_embeddings] = lambda: embeddings
    app.dependency_overrides[dependencies.get_vector_index] = lambda: vector_store
    app.dependency_overrides[dependencies.get_chat_model] = lambda: chat_model
    
    with TestClient(app) as test_client:
        yield test_client
    
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """Session factory sharing the test database"""
    return TestingSessionLocal
