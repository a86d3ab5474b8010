"""Document chunk model"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from concierge.database.base import Base


class DocumentChunk(Base):
    """Retrievable slice of a document, mirrored as a point in the vector index"""
    
    __tablename__ = "document_chunks"
    
    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(JSON, nullable=False)  # list[float], fixed dimensionality
    chunk_metadata = Column("metadata", JSON, nullable=True)  # at least {"filename": ...}
    vector_point_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    # Relationships
    document = relationship("Document", back_populates="chunks")
    
    __table_args__ = (
        Index('idx_document_chunk', 'document_id', 'chunk_index'),
    )
    
    def __repr__(self):
        return f"<DocumentChunk(id={self.id}, document_id={self.document_id}, index={self.chunk_index})>"
