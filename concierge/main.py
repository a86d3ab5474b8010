"""FastAPI application entry point"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from apscheduler.schedulers.background import BackgroundScheduler

from concierge import __version__
from concierge.api.endpoints import chat, conversations, documents, health
from concierge.database.session import engine
from concierge.database.base import Base
from concierge.config import settings
from concierge.utils.logger import setup_logging
from concierge.exceptions import (
    AuthRequired,
    ConciergeException,
    ConversationNotFound,
    DocumentNotFound,
    EmbeddingError,
    EmptyContent,
    StorageWriteError,
    UnreadableFile,
    UnsupportedFileType
)
from concierge.jobs.stale_documents import report_stale_documents

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Background scheduler for periodic tasks
scheduler = BackgroundScheduler()

# Exception class -> HTTP status
ERROR_STATUS_CODES = {
    AuthRequired: 401,
    DocumentNotFound: 404,
    ConversationNotFound: 404,
    UnsupportedFileType: 415,
    EmptyContent: 422,
    UnreadableFile: 422,
    EmbeddingError: 502,
    StorageWriteError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    - Startup: Initialize database tables, start background jobs
    - Shutdown: Cleanup resources
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    
    from concierge.rag.config import rag_config
    logger.info(f"Chat model: {rag_config.gemini_model}")
    logger.info(f"Embedding: {rag_config.gemini_embedding_model} ({rag_config.vector_size}d)")
    logger.info(f"Gemini API key: {'set' if rag_config.google_api_key else 'NOT SET'}")
    
    # Create database tables
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Database initialization error: {str(e)}")
    
    # Start background scheduler
    try:
        scheduler.add_job(
            report_stale_documents,
            'interval',
            minutes=settings.STALE_SWEEP_INTERVAL_MINUTES,
            id='stale_document_sweep',
            replace_existing=True
        )
        scheduler.start()
        logger.info("Background scheduler started with stale document sweep")
    except Exception as e:
        logger.error(f"Scheduler initialization error: {str(e)}")
    
    yield
    
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")
    
    try:
        if scheduler.running:
            scheduler.shutdown()
            logger.info("Background scheduler stopped")
    except Exception as e:
        logger.error(f"Scheduler shutdown error: {str(e)}")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Retrieval-augmented hotel concierge chatbot",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",   # Alternative dev port
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(conversations.router, prefix="/api", tags=["conversations"])
app.include_router(documents.router, prefix="/api", tags=["documents"])


# Exception handlers
@app.exception_handler(ConciergeException)
async def concierge_exception_handler(request: Request, exc: ConciergeException):
    """Map the error taxonomy onto HTTP responses"""
    status_code = 500
    for exc_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, exc_type):
            status_code = code
            break
    
    if status_code >= 500:
        logger.error(f"Concierge exception: {exc.__class__.__name__}: {str(exc)}")
    else:
        logger.info(f"Request rejected: {exc.__class__.__name__}: {str(exc)}")
    
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.__class__.__name__,
            "detail": str(exc)
        },
        headers=headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "detail": "An unexpected error occurred"
        }
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs" if settings.DEBUG else "disabled"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "concierge.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
