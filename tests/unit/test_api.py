"""Test HTTP endpoints"""


def test_health_check(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["dependencies"]["database"] == "connected"
    assert data["dependencies"]["qdrant"] == "connected"


def test_chat_requires_token(client):
    """Test anonymous chat is rejected"""
    response = client.post("/api/chat", json={"message": "Pool hours?"})
    assert response.status_code == 401
    assert response.json()["error"] == "AuthRequired"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_chat_with_uploaded_document(client, auth_headers):
    """Test upload then ask: the answer is grounded in the upload"""
    upload = client.post(
        "/api/documents/upload",
        files={"file": ("amenities.txt", b"Pool hours are 7am-10pm daily.", "text/plain")},
        headers=auth_headers
    )
    assert upload.status_code == 201
    assert upload.json()["status"] == "active"
    
    response = client.post("/api/chat", json={"message": "What are the pool hours?"}, headers=auth_headers)
    
    assert response.status_code == 200
    data = response.json()
    assert "7am-10pm" in data["reply"]
    assert data["persisted"] is True
    assert data["title"] == "What are the pool hours?"
    
    messages = client.get(f"/api/conversations/{data['conversation_id']}/messages", headers=auth_headers)
    assert [m["role"] for m in messages.json()] == ["user", "model"]


def test_upload_unsupported_type(client, auth_headers):
    """Test images are refused with 415 and nothing is stored"""
    response = client.post(
        "/api/documents/upload",
        files={"file": ("map.png", b"\x89PNG", "image/png")},
        headers=auth_headers
    )
    assert response.status_code == 415
    assert response.json()["detail"] == "Unsupported file type: image/png"
    
    listed = client.get("/api/documents", headers=auth_headers)
    assert listed.json()["total"] == 0


def test_upload_blank_text(client, auth_headers):
    response = client.post(
        "/api/documents/upload",
        files={"file": ("blank.txt", b"   ", "text/plain")},
        headers=auth_headers
    )
    assert response.status_code == 422
    assert response.json()["error"] == "EmptyContent"


def test_embedding_outage_on_add_document(client, auth_headers, embeddings):
    """Test embedding failure maps to 502 and leaves an error record"""
    embeddings.fail = True
    
    response = client.post(
        "/api/documents",
        json={"title": "Spa", "content": "Spa opens at 9am."},
        headers=auth_headers
    )
    
    assert response.status_code == 502
    items = client.get("/api/documents", headers=auth_headers).json()["items"]
    assert [d["status"] for d in items] == ["error"]


def test_delete_document(client, auth_headers, vector_store):
    created = client.post(
        "/api/documents",
        json={"title": "Gym", "content": "Gym open 24 hours."},
        headers=auth_headers
    ).json()
    
    assert client.delete(f"/api/documents/{created['id']}", headers=auth_headers).status_code == 204
    assert client.delete(f"/api/documents/{created['id']}", headers=auth_headers).status_code == 404
    assert vector_store.points == {}


def test_conversations_grouped(client, auth_headers):
    """Test conversation listing, rename and delete"""
    chat = client.post("/api/chat", json={"message": "Hello there"}, headers=auth_headers).json()
    
    listed = client.get("/api/conversations", headers=auth_headers).json()
    assert listed["total"] == 1
    assert list(listed["groups"]) == ["Today", "Yesterday", "Previous 7 Days", "Older"]
    assert [c["id"] for c in listed["groups"]["Today"]] == [chat["conversation_id"]]
    
    renamed = client.patch(
        f"/api/conversations/{chat['conversation_id']}",
        json={"title": "Greetings"},
        headers=auth_headers
    )
    assert renamed.json()["title"] == "Greetings"
    
    deleted = client.delete(f"/api/conversations/{chat['conversation_id']}", headers=auth_headers)
    assert deleted.status_code == 204
    assert client.get("/api/conversations", headers=auth_headers).json()["total"] == 0


def test_upload_corrupt_pdf(client, auth_headers):
    """Test a corrupt PDF maps to 422 with a readable message"""
    response = client.post(
        "/api/documents/upload",
        files={"file": ("broken.pdf", b"not a pdf at all", "application/pdf")},
        headers=auth_headers
    )
    assert response.status_code == 422
    assert response.json()["error"] == "UnreadableFile"
    assert response.json()["detail"].startswith("Could not read PDF file")
