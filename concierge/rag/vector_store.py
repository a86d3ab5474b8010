"""Qdrant vector database client"""

from typing import List, Dict, Any, Optional
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    VectorParams,
    PointStruct,
    PayloadSchemaType,
    Filter,
    FieldCondition,
    FilterSelector,
    MatchValue
)
import uuid
import logging
from concierge.rag.config import rag_config, RAGConfig

logger = logging.getLogger(__name__)

# Namespace for deterministic point ids derived from (document id, chunk index)
POINT_NAMESPACE = uuid.UUID("6f0b8a57-4d0e-4f61-9d3a-1c8c3f2b7e10")


def chunk_point_id(document_id: int, chunk_index: int) -> str:
    """Stable Qdrant point id for a document chunk"""
    return str(uuid.uuid5(POINT_NAMESPACE, f"document:{document_id}:chunk:{chunk_index}"))


class QdrantVectorStore:
    """Similarity search over document chunks, backed by Qdrant"""
    
    def __init__(self, client: Optional[QdrantClient] = None, config: RAGConfig = rag_config):
        self.config = config
        self.client = client
        self._initialized = False
        # Lazy initialization - connect on first use
        try:
            if self.client is None:
                self.client = self._init_client()
            self._ensure_collection()
            self._initialized = True
        except Exception as e:
            logger.warning(f"Qdrant not available at startup: {e}")
            logger.warning("Vector store will be initialized on first use")
    
    @property
    def collection_name(self) -> str:
        return self.config.qdrant_collection
    
    @property
    def vector_size(self) -> int:
        return self.config.vector_size
    
    def _init_client(self) -> QdrantClient:
        """Initialize Qdrant client"""
        if self.config.qdrant_api_key:
            client = QdrantClient(url=self.config.qdrant_url, api_key=self.config.qdrant_api_key)
        else:
            client = QdrantClient(url=self.config.qdrant_url)
        
        logger.info(f"Connected to Qdrant at {self.config.qdrant_url}")
        return client
    
    def _ensure_initialized(self):
        """Ensure client is initialized before use"""
        if self._initialized:
            return
        try:
            if self.client is None:
                self.client = self._init_client()
            self._ensure_collection()
            self._initialized = True
        except Exception as e:
            logger.error(f"Failed to initialize Qdrant: {e}")
            raise RuntimeError("Qdrant vector store is not available") from e
    
    def _ensure_collection(self):
        """Ensure collection exists, create if not"""
        if self.client.collection_exists(self.collection_name):
            logger.info(f"Collection exists: {self.collection_name}")
            return
        
        logger.info(f"Creating collection: {self.collection_name}")
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=self.vector_size, distance=Distance.COSINE)
        )
        self.ensure_payload_indexes()
        logger.info(f"Collection created: {self.collection_name}")
    
    def ensure_payload_indexes(self):
        """Index the payload fields used for scoping and deletion"""
        for field in ("user_id", "document_id"):
            schema = PayloadSchemaType.KEYWORD if field == "user_id" else PayloadSchemaType.INTEGER
            self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name=field,
                field_schema=schema
            )
    
    def health_check(self) -> bool:
        """Check if Qdrant is healthy"""
        try:
            self._ensure_initialized()
            self.client.get_collections()
            return True
        except Exception as e:
            logger.error(f"Qdrant health check failed: {e}")
            return False
    
    def upsert_chunk(
        self,
        point_id: str,
        vector: List[float],
        payload: Dict[str, Any]
    ) -> None:
        """
        Insert or replace one chunk point
        
        Args:
            point_id: Point id, see chunk_point_id()
            vector: Embedding vector
            payload: document_id, user_id, chunk_index, content, metadata
        """
        self._ensure_initialized()
        
        self.client.upsert(
            collection_name=self.collection_name,
            points=[PointStruct(id=point_id, vector=vector, payload=payload)]
        )
        logger.info(f"Upserted point {point_id} into {self.collection_name}")
    
    def match_documents(
        self,
        query_embedding: List[float],
        match_threshold: float,
        match_count: int,
        user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Similarity search, most similar first
        
        Args:
            query_embedding: Query vector
            match_threshold: Minimum cosine similarity
            match_count: Maximum number of rows
            user_id: Restrict to this owner's chunks when given
            
        Returns:
            Rows with id, document_id, content, metadata and similarity
        """
        self._ensure_initialized()
        
        query_filter = None
        if user_id is not None:
            query_filter = Filter(
                must=[FieldCondition(key="user_id", match=MatchValue(value=user_id))]
            )
        
        response = self.client.query_points(
            collection_name=self.collection_name,
            query=query_embedding,
            limit=match_count,
            score_threshold=match_threshold,
            query_filter=query_filter,
            with_payload=True
        )
        
        rows = []
        for point in response.points:
            payload = point.payload or {}
            rows.append({
                "id": str(point.id),
                "document_id": payload.get("document_id"),
                "user_id": payload.get("user_id"),
                "chunk_index": payload.get("chunk_index"),
                "content": payload.get("content"),
                "metadata": payload.get("metadata") or {},
                "similarity": point.score
            })
        
        logger.info(f"Found {len(rows)} chunk(s) (threshold: {match_threshold}, scoped: {user_id is not None})")
        return rows
    
    def delete_document_points(self, document_id: int) -> None:
        """Delete every point that belongs to a document"""
        self._ensure_initialized()
        
        self.client.delete(
            collection_name=self.collection_name,
            points_selector=FilterSelector(
                filter=Filter(
                    must=[FieldCondition(key="document_id", match=MatchValue(value=document_id))]
                )
            )
        )
        logger.info(f"Deleted points of document {document_id} from {self.collection_name}")
    
    def delete_points(self, point_ids: List[str]) -> None:
        """Delete points by id"""
        self._ensure_initialized()
        
        self.client.delete(collection_name=self.collection_name, points_selector=point_ids)
        logger.info(f"Deleted {len(point_ids)} point(s) from {self.collection_name}")
    
    def set_payload(self, point_ids: List[str], payload: Dict[str, Any]) -> None:
        """Merge payload keys into existing points"""
        self._ensure_initialized()
        
        self.client.set_payload(
            collection_name=self.collection_name,
            payload=payload,
            points=point_ids
        )
    
    def get_collection_info(self) -> Dict[str, Any]:
        """Get collection information"""
        self._ensure_initialized()
        
        collection = self.client.get_collection(self.collection_name)
        return {
            "name": self.collection_name,
            "points_count": collection.points_count,
            "status": str(collection.status)
        }


_vector_store: Optional[QdrantVectorStore] = None


def get_vector_store() -> QdrantVectorStore:
    """Get the process-wide vector store, creating it on first use"""
    global _vector_store
    if _vector_store is None:
        _vector_store = QdrantVectorStore()
    return _vector_store
