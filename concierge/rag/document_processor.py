"""Text extraction for uploaded knowledge files"""

from typing import List, Tuple
from io import BytesIO
import logging
import PyPDF2

from PyPDF2.errors import FileNotDecryptedError, PdfReadError

from concierge.exceptions import UnsupportedFileType, UnreadableFile, EmptyContent

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
TEXT_MIME = "text/plain"

# MIME type -> stored file type
SUPPORTED_TYPES = {
    PDF_MIME: "pdf",
    TEXT_MIME: "txt",
}

PAGE_SEPARATOR = "\n"


def normalize_mime(mime_type: str) -> str:
    """Strip parameters such as charset and lowercase"""
    return (mime_type or "").split(";")[0].strip().lower()


class DocumentProcessor:
    """Extract plain text from PDF and text uploads"""
    
    def extract_pdf_pages(self, data: bytes) -> List[str]:
        """
        Extract text page by page
        
        Args:
            data: Raw PDF bytes
            
        Returns:
            One string per page (empty for pages without a text layer)
            
        Raises:
            UnreadableFile: Corrupt or password-protected PDF
        """
        try:
            reader = PyPDF2.PdfReader(BytesIO(data))
            if reader.is_encrypted:
                raise UnreadableFile("PDF is password-protected and cannot be read.")
            total = len(reader.pages)
            logger.info(f"PDF loaded. Pages: {total}")
            
            pages = []
            for number, page in enumerate(reader.pages, 1):
                logger.debug(f"Processing page {number}/{total}...")
                pages.append(page.extract_text() or "")
        except (PdfReadError, FileNotDecryptedError) as e:
            logger.warning(f"Unreadable PDF: {e}")
            raise UnreadableFile(f"Could not read PDF file: {e}") from e
        return pages
    
    def _read_text(self, data: bytes) -> str:
        return data.decode("utf-8", errors="replace")
    
    def extract_text(self, filename: str, mime_type: str, data: bytes) -> Tuple[str, str]:
        """
        Extract text from an upload, failing before any embedding work
        
        Args:
            filename: Original file name (for logging)
            mime_type: Declared MIME type
            data: File bytes
            
        Returns:
            (text, file_type)
            
        Raises:
            UnsupportedFileType: MIME type is neither PDF nor plain text
            UnreadableFile: PDF could not be parsed
            EmptyContent: Nothing but whitespace was extracted
        """
        mime = normalize_mime(mime_type)
        logger.info(f"Handling file upload: {filename} ({mime or 'unknown'})")
        
        if mime not in SUPPORTED_TYPES:
            raise UnsupportedFileType(mime_type)
        
        if mime == PDF_MIME:
            text = PAGE_SEPARATOR.join(self.extract_pdf_pages(data))
        else:
            text = self._read_text(data)
        
        if not text.strip():
            raise EmptyContent()
        
        logger.info(f"Extraction complete. Total length: {len(text)}")
        return text, SUPPORTED_TYPES[mime]


# Global document processor instance
document_processor = DocumentProcessor()
