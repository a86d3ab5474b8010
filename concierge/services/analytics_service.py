"""Best-effort analytics logging"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from concierge.models.analytics import Analytics

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Writes query/response pairs; a failed write never reaches the guest"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def log_query(
        self,
        user_id: Optional[str],
        query: str,
        response: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Record one exchange, returning whether the write succeeded"""
        try:
            self.db.add(Analytics(
                user_id=user_id,
                query=query,
                response=response,
                event_metadata=metadata or {}
            ))
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error logging analytics: {e}")
            return False
