"""Analytics model"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from datetime import datetime
from concierge.database.base import Base


class Analytics(Base):
    """Query/response pair logged for reporting"""
    
    __tablename__ = "analytics"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    query = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    
    def __repr__(self):
        return f"<Analytics(id={self.id}, user_id={self.user_id})>"
