"""Knowledge document endpoints"""

from fastapi import APIRouter, UploadFile, File, HTTPException, Depends
import logging

from concierge.api.dependencies import get_document_service
from concierge.config import settings
from concierge.schemas.document import DocumentCreate, DocumentListResponse, DocumentResponse
from concierge.security.auth import CurrentUser, require_user
from concierge.services.document_service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    user: CurrentUser = Depends(require_user),
    service: DocumentService = Depends(get_document_service)
):
    """Documents owned by the current user, newest first"""
    documents = service.list_documents(user)
    return DocumentListResponse(
        total=len(documents),
        items=[DocumentResponse.model_validate(d) for d in documents]
    )


@router.post("/documents", response_model=DocumentResponse, status_code=201)
async def add_document(
    request: DocumentCreate,
    user: CurrentUser = Depends(require_user),
    service: DocumentService = Depends(get_document_service)
):
    """Add a document from raw text"""
    document = await service.ingest(
        user,
        request.title,
        request.content,
        file_type="txt",
        file_size=len(request.content.encode("utf-8"))
    )
    return DocumentResponse.model_validate(document)


@router.post("/documents/upload", response_model=DocumentResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(require_user),
    service: DocumentService = Depends(get_document_service)
):
    """
    Upload a PDF or plain-text file
    
    Supports: application/pdf, text/plain
    Max size: MAX_UPLOAD_BYTES
    """
    data = await file.read()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit"
        )
    
    document = await service.ingest_file(user, file.filename, file.content_type, data)
    return DocumentResponse.model_validate(document)


@router.delete("/documents/{document_id}", status_code=204)
async def delete_document(
    document_id: int,
    user: CurrentUser = Depends(require_user),
    service: DocumentService = Depends(get_document_service)
):
    """Delete a document together with its chunks"""
    service.delete_document(user, document_id)
