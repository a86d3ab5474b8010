"""Document ingestion and management service"""

from typing import List, Optional
from datetime import datetime, timedelta
import logging

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from concierge.models.document import Document, DocumentStatus
from concierge.models.document_chunk import DocumentChunk
from concierge.rag.config import rag_config
from concierge.rag.document_processor import document_processor
from concierge.rag.embeddings import EmbeddingIntent
from concierge.rag.vector_store import chunk_point_id
from concierge.exceptions import (
    AuthRequired,
    DocumentNotFound,
    EmbeddingError,
    EmptyContent,
    StorageWriteError
)

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Ingest knowledge documents and keep their lifecycle status honest
    
    A document is created as ``processing`` before any expensive work,
    becomes ``active`` only once its chunk is embedded and stored, and
    becomes ``error`` when embedding or chunk storage fails.
    """
    
    def __init__(
        self,
        db: Session,
        embeddings,
        vector_store,
        processor=document_processor,
        max_embed_chars: Optional[int] = None
    ):
        self.db = db
        self.embeddings = embeddings
        self.vector_store = vector_store
        self.processor = processor
        self.max_embed_chars = max_embed_chars or rag_config.max_embed_chars
    
    async def ingest(
        self,
        user,
        title: str,
        content: str,
        file_type: str = "txt",
        file_size: int = 0
    ) -> Document:
        """
        Store, embed and activate a document
        
        Args:
            user: Authenticated CurrentUser
            title: Filename / display title
            content: Full document text
            file_type: Source type (pdf, txt)
            file_size: Source size in bytes
            
        Returns:
            The active Document
            
        Raises:
            AuthRequired: No user
            EmptyContent: Blank content
            EmbeddingError: Embedding failed (document marked error)
            StorageWriteError: Document or chunk write failed
        """
        if user is None:
            logger.error("No user found for upload")
            raise AuthRequired("You must be logged in to add documents.")
        if not content or not content.strip():
            raise EmptyContent("Document content is empty.")
        
        logger.info(f"[User {user.id}] Adding document: \"{title}\" ({len(content)} chars)")
        
        # 1. Create the record first so an interrupted ingestion stays visible
        doc = Document(
            user_id=user.id,
            filename=title,
            title=title,
            file_type=file_type,
            file_size=file_size or 0,
            status=DocumentStatus.PROCESSING,
            total_chunks=1,
            indexed_chunks=0
        )
        try:
            self.db.add(doc)
            self.db.commit()
            self.db.refresh(doc)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Documents insert error: {e}")
            raise StorageWriteError(f"Could not create document record: {e}") from e
        
        logger.info(f"Document record {doc.id} created. Generating embedding...")
        
        # 2. Embed a bounded prefix of the content
        try:
            embedding = await self.embeddings.embed_async(
                content[:self.max_embed_chars],
                EmbeddingIntent.DOCUMENT
            )
        except EmbeddingError as e:
            self._mark_error(doc, str(e))
            raise
        
        # 3. Store the chunk (row + vector point), untruncated content
        self._persist_chunk(doc, user, content, embedding)
        
        # 4. Activate
        try:
            doc.status = DocumentStatus.ACTIVE
            doc.indexed_chunks = 1
            doc.failed_reason = None
            doc.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(doc)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to activate document {doc.id}: {e}")
            # The chunk is already stored and indexed; take it back out
            self._discard_chunks(doc)
            self._mark_error(doc, f"Activation failed: {e}")
            raise StorageWriteError(f"Could not activate document: {e}") from e
        
        logger.info(f"Document {doc.id} fully indexed and active")
        return doc
    
    def _persist_chunk(self, doc: Document, user, content: str, embedding: List[float]) -> DocumentChunk:
        """Write the chunk row and its vector point; undo both on failure"""
        point_id = chunk_point_id(doc.id, 0)
        metadata = {"filename": doc.filename}
        chunk = DocumentChunk(
            document_id=doc.id,
            user_id=user.id,
            chunk_index=0,
            content=content,
            embedding=embedding,
            chunk_metadata=metadata,
            vector_point_id=point_id
        )
        
        try:
            self.db.add(chunk)
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"document_chunks insert error: {e}")
            self._mark_error(doc, f"Chunk storage failed: {e}")
            raise StorageWriteError(f"Could not store document chunk: {e}") from e
        
        try:
            self.vector_store.upsert_chunk(
                point_id=point_id,
                vector=embedding,
                payload={
                    "document_id": doc.id,
                    "user_id": user.id,
                    "chunk_index": 0,
                    "content": content,
                    "metadata": metadata
                }
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Vector index upsert error: {e}")
            self._mark_error(doc, f"Vector index write failed: {e}")
            raise StorageWriteError(f"Could not index document chunk: {e}") from e
        
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"document_chunks commit error: {e}")
            try:
                self.vector_store.delete_points([point_id])
            except Exception as cleanup_error:
                logger.error(f"Failed to remove orphan point {point_id}: {cleanup_error}")
            self._mark_error(doc, f"Chunk storage failed: {e}")
            raise StorageWriteError(f"Could not store document chunk: {e}") from e
        
        return chunk
    
    def _discard_chunks(self, doc: Document) -> None:
        """Remove a document's vector points and chunk rows; committed by _mark_error"""
        try:
            self.vector_store.delete_document_points(doc.id)
        except Exception as e:
            logger.error(f"Failed to remove points of document {doc.id}: {e}")
        
        try:
            self.db.query(DocumentChunk).filter(
                DocumentChunk.document_id == doc.id
            ).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to remove chunks of document {doc.id}: {e}")

    def _mark_error(self, doc: Document, reason: str) -> None:
        """Best-effort transition to ``error``"""
        try:
            doc.status = DocumentStatus.ERROR
            doc.failed_reason = reason[:1000]  # Limit error message length
            doc.updated_at = datetime.utcnow()
            self.db.commit()
            logger.warning(f"Document {doc.id} marked as error: {reason}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update error status of document {doc.id}: {e}")
    
    async def ingest_file(self, user, filename: str, mime_type: str, data: bytes) -> Document:
        """
        Extract text from an upload and ingest it
        
        File type and emptiness are checked before any record is created or
        any embedding call is made.
        
        Raises:
            AuthRequired, UnsupportedFileType, UnreadableFile, EmptyContent,
            plus everything ingest() raises
        """
        if user is None:
            raise AuthRequired("You must be logged in to add documents.")
        
        text, file_type = self.processor.extract_text(filename, mime_type, data)
        return await self.ingest(user, filename, text, file_type, len(data))
    
    def list_documents(self, user) -> List[Document]:
        """Documents owned by the user, newest first"""
        if user is None:
            raise AuthRequired()
        return (
            self.db.query(Document)
            .filter(Document.user_id == user.id)
            .order_by(desc(Document.created_at), desc(Document.id))
            .all()
        )
    
    def get_document(self, user, document_id: int) -> Document:
        """Owned document or DocumentNotFound"""
        if user is None:
            raise AuthRequired()
        doc = self.db.query(Document).filter(
            Document.id == document_id,
            Document.user_id == user.id
        ).first()
        if not doc:
            raise DocumentNotFound(f"Document {document_id} not found")
        return doc
    
    def delete_document(self, user, document_id: int) -> None:
        """Delete a document, its chunks and its vector points"""
        doc = self.get_document(user, document_id)
        
        try:
            self.db.delete(doc)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting document {document_id}: {e}")
            raise StorageWriteError(f"Could not delete document: {e}") from e
        
        try:
            self.vector_store.delete_document_points(document_id)
        except Exception as e:
            logger.error(f"Failed to delete vector points of document {document_id}: {e}")
        
        logger.info(f"[User {user.id}] Deleted document {document_id}")
    
    def find_stale_documents(self, older_than: timedelta) -> List[Document]:
        """
        Documents stuck in ``processing`` for longer than ``older_than``
        
        Detection only: ingestion is not atomic, so a crash between its writes
        leaves the record behind. Nothing is reconciled here.
        """
        cutoff = datetime.utcnow() - older_than
        return (
            self.db.query(Document)
            .filter(
                Document.status == DocumentStatus.PROCESSING,
                Document.updated_at < cutoff
            )
            .order_by(Document.updated_at)
            .all()
        )
