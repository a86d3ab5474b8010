"""
Migration: Backfill user_id into vector index payloads

Points written before user scoping existed carry no ``user_id`` payload, so
the user-scoped similarity search cannot match them and chat falls back to
the unscoped search. This copies ``user_id`` from document_chunks rows into
the matching Qdrant points and creates the payload indexes.

Run this script once against an existing deployment:
    python migrations/backfill_chunk_user_scope.py
"""

import os
import sys
from sqlalchemy import create_engine, text
from dotenv import load_dotenv

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables
load_dotenv()


def backfill_chunk_user_scope() -> bool:
    """Copy chunk owners into Qdrant point payloads"""
    from concierge.rag.vector_store import get_vector_store, chunk_point_id
    
    database_url = os.getenv('DATABASE_URL')
    
    if not database_url:
        print("❌ ERROR: DATABASE_URL not found in environment variables")
        print("   Make sure .env file exists with DATABASE_URL")
        return False
    
    print("=" * 60)
    print("Backfilling user_id into vector payloads")
    print("=" * 60)
    print(f"Database: {database_url.split('@')[-1]}")  # Hide password
    print()
    
    try:
        engine = create_engine(database_url)
        store = get_vector_store()
        
        with engine.connect() as connection:
            rows = connection.execute(text("""
                SELECT document_id, chunk_index, user_id, vector_point_id
                FROM document_chunks
            """)).fetchall()
        
        print(f"Chunks found: {len(rows)}")
        
        updated = 0
        for document_id, chunk_index, user_id, point_id in rows:
            point_id = point_id or chunk_point_id(document_id, chunk_index)
            store.set_payload([point_id], {"user_id": user_id, "document_id": document_id})
            updated += 1
        
        store.ensure_payload_indexes()
        
        print()
        print(f"✅ Updated {updated} point(s)")
        print("=" * 60)
        print("Migration successful!")
        print("=" * 60)
        return True
        
    except Exception as e:
        print()
        print("=" * 60)
        print("❌ Migration failed!")
        print("=" * 60)
        print(f"Error: {str(e)}")
        print()
        print("Troubleshooting:")
        print("  1. Check DATABASE_URL and QDRANT_URL in .env file")
        print("  2. Ensure database and Qdrant are accessible")
        print()
        return False


if __name__ == "__main__":
    success = backfill_chunk_user_scope()
    sys.exit(0 if success else 1)
