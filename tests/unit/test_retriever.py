"""Test similarity retrieval"""

from concierge.rag.retriever import Retriever

QUERY = [1.0] + [0.0] * 767


def seed(vector_store, user_id, contents):
    for index, content in enumerate(contents):
        vector = [1.0, 0.1 * index] + [0.0] * 766
        vector_store.upsert_chunk(
            point_id=f"{user_id}-{index}",
            vector=vector,
            payload={"document_id": index + 1, "user_id": user_id, "content": content,
                     "metadata": {"filename": f"{index}.txt"}}
        )


def test_returns_at_most_top_k(vector_store):
    """Test result size is bounded by top_k"""
    seed(vector_store, "guest-1", [f"chunk {i}" for i in range(6)])
    
    chunks = Retriever(vector_store, top_k=3, min_score=0.3).retrieve(QUERY, "guest-1")
    
    assert len(chunks) == 3
    assert [c.content for c in chunks] == ["chunk 0", "chunk 1", "chunk 2"]
    similarities = [c.similarity for c in chunks]
    assert similarities == sorted(similarities, reverse=True)


def test_threshold_filters_rows_even_if_store_does_not(vector_store, monkeypatch):
    """Test rows below min_score never come back"""
    rows = [
        {"id": "a", "document_id": 1, "content": "Breakfast 6-10am", "metadata": {}, "similarity": 0.9},
        {"id": "b", "document_id": 2, "content": "Unrelated", "metadata": {}, "similarity": 0.1},
        {"id": "c", "document_id": 3, "content": "   ", "metadata": {}, "similarity": 0.8},
        {"id": "d", "document_id": 4, "metadata": {}, "similarity": 0.8},
    ]
    monkeypatch.setattr(vector_store, "match_documents", lambda **kwargs: rows)
    
    chunks = Retriever(vector_store, top_k=5, min_score=0.3).retrieve(QUERY, "guest-1")
    
    assert [c.id for c in chunks] == ["a"]


def test_scoped_search_passes_user(vector_store):
    """Test the first search is restricted to the requesting user"""
    seed(vector_store, "guest-1", ["mine"])
    seed(vector_store, "guest-2", ["theirs"])
    
    result = Retriever(vector_store, top_k=5, min_score=0.3).retrieve_detailed(QUERY, "guest-1")
    
    assert result.scoped is True
    assert result.degraded is False
    assert [c.content for c in result.chunks] == ["mine"]
    assert vector_store.match_calls[0]["user_id"] == "guest-1"
    assert len(vector_store.match_calls) == 1


def test_scoped_failure_falls_back_to_unscoped(vector_store):
    """Test an unscoped retry is attempted and flagged degraded"""
    seed(vector_store, "guest-1", ["Pool hours are 7am-10pm daily."])
    vector_store.fail_scoped = True
    
    result = Retriever(vector_store, top_k=3, min_score=0.3).retrieve_detailed(QUERY, "guest-1")
    
    assert [call["user_id"] for call in vector_store.match_calls] == ["guest-1", None]
    assert result.degraded is True
    assert result.scoped is False
    assert "p_user_id" in result.error
    assert len(result.chunks) == 1


def test_both_searches_failing_yields_empty(vector_store):
    """Test retrieval never raises"""
    seed(vector_store, "guest-1", ["anything"])
    vector_store.fail_scoped = True
    vector_store.fail_unscoped = True
    
    result = Retriever(vector_store).retrieve_detailed(QUERY, "guest-1")
    
    assert result.chunks == []
    assert result.degraded is True
    assert len(vector_store.match_calls) == 2


def test_filename_from_metadata(vector_store):
    """Test chunk filename comes from metadata"""
    seed(vector_store, "guest-1", ["spa menu"])
    
    chunk = Retriever(vector_store, min_score=0.3).retrieve(QUERY, "guest-1")[0]
    
    assert chunk.filename == "0.txt"


def test_explicit_zero_top_k(vector_store):
    """Test top_k=0 returns nothing instead of the default"""
    seed(vector_store, "guest-1", ["chunk"])
    
    result = Retriever(vector_store, top_k=3, min_score=0.3).retrieve_detailed(QUERY, "guest-1", top_k=0)
    
    assert result.chunks == []
    assert vector_store.match_calls == []
