"""Document model"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from concierge.database.base import Base
import enum


class DocumentStatus(str, enum.Enum):
    """Document lifecycle status"""
    PENDING = "pending"
    PROCESSING = "processing"
    INDEXED = "indexed"
    ACTIVE = "active"
    ERROR = "error"


class Document(Base):
    """A unit of hotel knowledge owned by one user"""
    
    __tablename__ = "documents"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    filename = Column(String(500), nullable=False)
    title = Column(String(500), nullable=True)
    status = Column(
        Enum(DocumentStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=DocumentStatus.PENDING,
        nullable=False,
        index=True
    )
    file_type = Column(String(50), nullable=True)  # pdf, txt
    file_size = Column(Integer, default=0, nullable=False)  # Size in bytes
    total_chunks = Column(Integer, default=1, nullable=False)
    indexed_chunks = Column(Integer, default=0, nullable=False)
    failed_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    chunks = relationship(
        "DocumentChunk",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentChunk.chunk_index"
    )
    
    __table_args__ = (
        Index('idx_user_status', 'user_id', 'status'),
    )
    
    def __repr__(self):
        return f"<Document(id={self.id}, filename={self.filename}, status={self.status})>"
