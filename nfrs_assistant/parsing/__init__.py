"""Document checks performed before upload.

Responsibilities:
    - File type allow-list (PDF, TXT, DOCX)
    - PDF header and readability check with pypdf
    - Title suggestion from PDF metadata or the file name

Nothing here touches the network; a rejected file never reaches the
document service.
"""

from nfrs_assistant.parsing.document_inspector import (
    ALLOWED_FILE_TYPES,
    MAX_FILE_SIZE,
    DocumentInfo,
    inspect_document,
)

__all__ = ["ALLOWED_FILE_TYPES", "MAX_FILE_SIZE", "DocumentInfo", "inspect_document"]
