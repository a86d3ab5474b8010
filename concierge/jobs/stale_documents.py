"""Sweep for documents stuck in processing"""

from datetime import timedelta
import logging

from concierge.config import settings
from concierge.database.session import SessionLocal
from concierge.services.document_service import DocumentService

logger = logging.getLogger(__name__)


def report_stale_documents(session_factory=SessionLocal, max_age_minutes: int = None) -> list:
    """
    Log documents that never left ``processing``
    Run this periodically via scheduler; it reports and never reconciles.
    
    Returns:
        Ids of the stale documents
    """
    max_age = timedelta(minutes=max_age_minutes or settings.STALE_DOCUMENT_MINUTES)
    db = session_factory()
    try:
        # Lookup only, no embedding or vector access needed
        service = DocumentService(db, embeddings=None, vector_store=None)
        stale = service.find_stale_documents(max_age)
        
        if stale:
            for doc in stale:
                logger.warning(
                    f"Document {doc.id} ({doc.filename}) of user {doc.user_id} "
                    f"stuck in processing since {doc.updated_at}"
                )
        else:
            logger.info("No stale documents")
        
        return [doc.id for doc in stale]
        
    except Exception as e:
        logger.error(f"Stale document sweep failed: {str(e)}")
        return []
    finally:
        db.close()
