"""Local document inspection using pypdf.

Checks an upload against the allowed file types before any network call and
derives a display title. PDFs are opened to confirm they are readable and to
read their title metadata.
"""

import io
import logging
from pathlib import PurePath

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from nfrs_assistant.exceptions import UnsupportedTypeError

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MAGIC_BYTES = b"%PDF"
CONTENT_TYPES = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
ALLOWED_FILE_TYPES = frozenset(CONTENT_TYPES)


class DocumentInfo(BaseModel):
    """What the client knows about a document before uploading it.

    Attributes:
        file_type: Lower-case extension, one of ALLOWED_FILE_TYPES.
        content_type: MIME type sent with the upload.
        title: Suggested title (PDF metadata title, else the file stem).
        pages: Page count for PDFs, None otherwise.
    """

    file_type: str
    content_type: str
    title: str
    pages: int | None = Field(default=None, ge=0)


def file_type_of(filename: str) -> str:
    return PurePath(filename).suffix.lower().lstrip(".")


def _pdf_title_and_pages(content: bytes) -> tuple[str | None, int]:
    """Open a PDF and return its metadata title and page count.

    Raises:
        UnsupportedTypeError: If the bytes are not a readable PDF.
    """
    if not content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise UnsupportedTypeError("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise UnsupportedTypeError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise UnsupportedTypeError(f"Failed to read PDF: {e}") from e

    title = None
    try:
        if reader.metadata and reader.metadata.title:
            title = str(reader.metadata.title).strip() or None
    except Exception as e:
        logger.warning(f"Failed to read PDF metadata: {e}")
    return title, pages


def inspect_document(filename: str, content: bytes) -> DocumentInfo:
    """Validate a document for upload and suggest a title.

    Args:
        filename: Original file name, used for the type and fallback title.
        content: Raw file bytes.

    Returns:
        DocumentInfo describing the file.

    Raises:
        UnsupportedTypeError: If the extension is not allowed, the file is
                              empty, or a PDF cannot be read.
    """
    file_type = file_type_of(filename)
    if file_type not in ALLOWED_FILE_TYPES:
        allowed = ", ".join(sorted(ALLOWED_FILE_TYPES)).upper()
        raise UnsupportedTypeError(f"Unsupported file type '{file_type or filename}'. Allowed: {allowed}")
    if not content:
        raise UnsupportedTypeError("Empty file provided")

    title: str | None = None
    pages: int | None = None
    if file_type == "pdf":
        title, pages = _pdf_title_and_pages(content)

    return DocumentInfo(
        file_type=file_type,
        content_type=CONTENT_TYPES[file_type],
        title=title or PurePath(filename).stem,
        pages=pages,
    )
