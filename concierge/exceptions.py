"""Custom exception classes"""


class ConciergeException(Exception):
    """Base exception for the concierge backend"""
    pass


class AuthRequired(ConciergeException):
    """No authenticated user for an operation that needs one"""
    
    def __init__(self, message: str = "You must be logged in to perform this action."):
        super().__init__(message)


class EmbeddingError(ConciergeException):
    """Embedding provider unreachable, misconfigured or returned malformed output"""
    pass


class UnsupportedFileType(ConciergeException):
    """Uploaded file has a MIME type the ingestion pipeline cannot read"""
    
    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type or 'unknown'}")


class UnreadableFile(ConciergeException):
    """Uploaded file claims a supported type but cannot be parsed (corrupt or encrypted)"""
    pass


class EmptyContent(ConciergeException):
    """Extracted text is blank"""
    
    def __init__(self, message: str = "No text content found in the file."):
        super().__init__(message)


class StorageWriteError(ConciergeException):
    """Document, chunk or message persistence failed"""
    pass


class GenerationError(ConciergeException):
    """Hosted chat model failed or returned no text"""
    pass


class DocumentNotFound(ConciergeException):
    """Document does not exist or is not owned by the caller"""
    pass


class ConversationNotFound(ConciergeException):
    """Conversation does not exist or is not owned by the caller"""
    pass
