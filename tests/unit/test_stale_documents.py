"""Test stale document sweep job"""

from datetime import datetime, timedelta

from concierge.jobs.stale_documents import report_stale_documents
from concierge.models import Document, DocumentStatus


def test_report_stale_documents(db, user, session_factory):
    """Test the sweep reports stuck documents without touching them"""
    old = datetime.utcnow() - timedelta(hours=1)
    doc = Document(user_id=user.id, filename="stuck.pdf", status=DocumentStatus.PROCESSING,
                   created_at=old, updated_at=old)
    db.add(doc)
    db.commit()
    
    stale_ids = report_stale_documents(session_factory=session_factory, max_age_minutes=30)
    
    assert stale_ids == [doc.id]
    db.refresh(doc)
    assert doc.status == DocumentStatus.PROCESSING


def test_report_stale_documents_none(db, session_factory):
    """Test an empty sweep"""
    assert report_stale_documents(session_factory=session_factory, max_age_minutes=30) == []
