"""Document schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List
from concierge.models.document import DocumentStatus
from datetime import datetime


class DocumentCreate(BaseModel):
    """Raw text document"""
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)


class DocumentResponse(BaseModel):
    """Document summary"""
    id: int
    filename: str
    title: Optional[str] = None
    status: DocumentStatus
    file_type: Optional[str] = None
    file_size: int = 0
    indexed_chunks: int = 0
    failed_reason: Optional[str] = None
    created_at: datetime
    
    class Config:
        from_attributes = True


class DocumentListResponse(BaseModel):
    """Document list"""
    total: int
    items: List[DocumentResponse]
