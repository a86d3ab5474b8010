"""
Sample document ingestion script

Run this script to populate the knowledge base with sample hotel documents
owned by one user.
Usage: python scripts/ingest_sample_docs.py <user-id> [email]
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from concierge.database.base import Base
from concierge.database.session import SessionLocal, engine
from concierge.rag.embeddings import get_embeddings_service
from concierge.rag.vector_store import get_vector_store
from concierge.security.auth import CurrentUser
from concierge.services.document_service import DocumentService
from concierge.exceptions import ConciergeException
from concierge.utils.logger import setup_logging
import logging

setup_logging()
logger = logging.getLogger(__name__)


SAMPLE_DOCUMENTS = [
    {
        'title': 'Pool and Spa Hours',
        'text': """
Pool hours are 7am-10pm daily. The rooftop pool is heated year round.
Towels are provided at the pool entrance.
The spa is open 9am-9pm; treatments can be booked at the spa desk or through the front desk.
Children under 12 must be accompanied by an adult in the pool area.
        """
    },
    {
        'title': 'Dining',
        'text': """
Breakfast is served at the Horizon Terrace from 6:30am to 10:30am.
The Skyline Bar is open from 5pm to 1am and serves light bites until midnight.
Room service is available 24 hours a day.
        """
    },
    {
        'title': 'Check-in and Check-out',
        'text': """
Check-in starts at 3pm and check-out is at 11am.
Late check-out until 2pm can be requested at the front desk, subject to availability.
Luggage storage is available free of charge on the day of arrival and departure.
        """
    },
]


async def ingest_all(user: CurrentUser) -> list:
    """Ingest every sample document and return (title, result) pairs"""
    db = SessionLocal()
    service = DocumentService(db, get_embeddings_service(), get_vector_store())
    results = []
    try:
        for i, doc in enumerate(SAMPLE_DOCUMENTS, 1):
            logger.info(f"[{i}/{len(SAMPLE_DOCUMENTS)}] Processing: {doc['title']}")
            content = doc['text'].strip()
            try:
                document = await service.ingest(
                    user,
                    doc['title'],
                    content,
                    file_type='txt',
                    file_size=len(content.encode('utf-8'))
                )
                logger.info(f"  ✓ Document {document.id} is {document.status.value}")
                results.append((doc['title'], None))
            except ConciergeException as e:
                logger.error(f"  ✗ Failed to process document: {e}")
                results.append((doc['title'], str(e)))
    finally:
        db.close()
    return results


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    
    user = CurrentUser(id=sys.argv[1], email=sys.argv[2] if len(sys.argv) > 2 else "")
    
    logger.info("=" * 60)
    logger.info("Starting sample document ingestion")
    logger.info("=" * 60)
    
    if not get_vector_store().health_check():
        logger.error("Qdrant is not accessible. Please check your configuration.")
        sys.exit(1)
    
    Base.metadata.create_all(bind=engine)
    results = asyncio.run(ingest_all(user))
    
    failed = [(title, error) for title, error in results if error]
    logger.info("=" * 60)
    logger.info(f"✓ Successfully processed: {len(results) - len(failed)}/{len(results)} documents")
    for title, error in failed:
        logger.warning(f"  - {title}: {error}")
    logger.info("=" * 60)
    
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
