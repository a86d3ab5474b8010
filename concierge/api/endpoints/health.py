"""Health check endpoint"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from redis import Redis
import logging

from concierge.database.session import SessionLocal
from concierge.schemas.response import HealthResponse
from concierge.config import settings
from concierge.api.dependencies import get_vector_index

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(response: Response, vector_index=Depends(get_vector_index)):
    """
    Health check endpoint
    Checks connectivity to:
    - Database
    - Redis (optional, embedding cache)
    - Qdrant (optional - chat degrades to no context without it)
    """
    health_status = {
        "status": "healthy",
        "dependencies": {}
    }
    
    # Check database
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health_status["dependencies"]["database"] = "connected"
    except Exception as e:
        health_status["dependencies"]["database"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"
        logger.error(f"Database health check failed: {str(e)}")
    
    # Check Redis
    try:
        redis_client = Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
        redis_client.ping()
        health_status["dependencies"]["redis"] = "connected"
    except Exception as e:
        health_status["dependencies"]["redis"] = f"not available: {str(e)}"
        logger.warning(f"Redis health check failed: {str(e)}")
    
    # Check Qdrant
    if vector_index.health_check():
        health_status["dependencies"]["qdrant"] = "connected"
    else:
        health_status["dependencies"]["qdrant"] = "not available"
    
    if health_status["status"] == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    
    return HealthResponse(**health_status)
