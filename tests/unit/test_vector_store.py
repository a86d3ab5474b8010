"""Test Qdrant vector store against a local in-memory client"""

import pytest
from qdrant_client import QdrantClient

from concierge.rag.config import RAGConfig
from concierge.rag.vector_store import QdrantVectorStore, chunk_point_id


@pytest.fixture
def store():
    config = RAGConfig(qdrant_collection="test_chunks", vector_size=4)
    return QdrantVectorStore(client=QdrantClient(":memory:"), config=config)


def add(store, document_id, user_id, vector, content):
    store.upsert_chunk(
        point_id=chunk_point_id(document_id, 0),
        vector=vector,
        payload={
            "document_id": document_id,
            "user_id": user_id,
            "chunk_index": 0,
            "content": content,
            "metadata": {"filename": f"doc-{document_id}.txt"}
        }
    )


def test_point_id_is_deterministic():
    """Test the same chunk always maps to the same point"""
    assert chunk_point_id(1, 0) == chunk_point_id(1, 0)
    assert chunk_point_id(1, 0) != chunk_point_id(2, 0)


def test_scoped_match_only_returns_owner_chunks(store):
    """Test user filter excludes other tenants"""
    add(store, 1, "guest-1", [1.0, 0.0, 0.0, 0.0], "Pool hours are 7am-10pm daily.")
    add(store, 2, "guest-2", [1.0, 0.0, 0.0, 0.0], "Private notes of another hotel.")
    
    rows = store.match_documents([1.0, 0.0, 0.0, 0.0], 0.3, 5, user_id="guest-1")
    
    assert [row["document_id"] for row in rows] == [1]
    assert rows[0]["content"] == "Pool hours are 7am-10pm daily."
    assert rows[0]["metadata"] == {"filename": "doc-1.txt"}
    assert rows[0]["similarity"] == pytest.approx(1.0)


def test_match_respects_threshold_and_order(store):
    """Test rows are ordered by similarity and filtered by threshold"""
    add(store, 1, "guest-1", [1.0, 0.0, 0.0, 0.0], "exact")
    add(store, 2, "guest-1", [1.0, 1.0, 0.0, 0.0], "close")
    add(store, 3, "guest-1", [0.0, 0.0, 1.0, 0.0], "unrelated")
    
    rows = store.match_documents([1.0, 0.0, 0.0, 0.0], 0.3, 5, user_id="guest-1")
    
    assert [row["content"] for row in rows] == ["exact", "close"]
    assert rows[0]["similarity"] >= rows[1]["similarity"] >= 0.3


def test_match_count_limits_rows(store):
    """Test match_count bounds the result"""
    for document_id in range(1, 6):
        add(store, document_id, "guest-1", [1.0, 0.1 * document_id, 0.0, 0.0], f"chunk {document_id}")
    
    rows = store.match_documents([1.0, 0.0, 0.0, 0.0], 0.0, 3, user_id="guest-1")
    
    assert len(rows) == 3


def test_delete_document_points(store):
    """Test deleting by document id removes its points"""
    add(store, 1, "guest-1", [1.0, 0.0, 0.0, 0.0], "keep me out")
    add(store, 2, "guest-1", [1.0, 0.0, 0.0, 0.0], "stay")
    
    store.delete_document_points(1)
    rows = store.match_documents([1.0, 0.0, 0.0, 0.0], 0.3, 5)
    
    assert [row["document_id"] for row in rows] == [2]


def test_health_check(store):
    """Test local client reports healthy"""
    assert store.health_check() is True
