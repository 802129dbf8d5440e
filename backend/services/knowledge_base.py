"""Document intake for the knowledge base: type checks and page counting."""

import io
import logging
import math
import re
import zipfile
from typing import Optional

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from core.errors import UnsupportedDocumentType
from models.knowledge_base import DocumentFile
from services.database.local_store import save_rag_document

logger = logging.getLogger(__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"
SUPPORTED_TYPES = {PDF_TYPE, DOCX_TYPE, TEXT_TYPE}

# Characters that make up one page of plain text
CHARS_PER_TEXT_PAGE = 3000

_DOCX_PAGES_PATTERN = re.compile(r"<Pages>(\d+)</Pages>")
_UNSAFE_NAME_CHARS = re.compile(r"[^a-z0-9_-]+")


def _slug(text: str) -> str:
    return _UNSAFE_NAME_CHARS.sub("_", text.strip().lower()).strip("_")


def sanitize_filename(name: str) -> str:
    """Reduce an uploaded name to a safe slug, keeping its extension."""
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    stem, dot, ext = base.rpartition(".")
    if not dot:
        stem, ext = base, ""
    stem = _slug(stem)
    ext = re.sub(r"[^a-z0-9]+", "", ext.lower())
    if stem and ext:
        return f"{stem}.{ext}"
    return stem or _slug(base) or "document"


def count_pdf_pages(data: bytes) -> int:
    """Page count from the PDF page tree, defaulting to 1 for unreadable files."""
    try:
        return max(1, len(PdfReader(io.BytesIO(data)).pages))
    except PdfReadError as e:
        logger.warning(f"Could not read PDF: {e}")
        return 1


def count_docx_pages(data: bytes) -> int:
    """Read the page count Word stores in docProps/app.xml, defaulting to 1."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            app_xml = archive.read("docProps/app.xml").decode("utf-8", errors="ignore")
    except (zipfile.BadZipFile, KeyError) as e:
        logger.warning(f"Could not read DOCX metadata: {e}")
        return 1

    match = _DOCX_PAGES_PATTERN.search(app_xml)
    if not match:
        return 1
    return max(1, int(match.group(1)))


def count_text_pages(data: bytes) -> int:
    text = data.decode("utf-8", errors="ignore")
    return max(1, math.ceil(len(text) / CHARS_PER_TEXT_PAGE))


def count_pages(content_type: Optional[str], data: bytes) -> int:
    """Count pages of an uploaded document.

    Raises:
        UnsupportedDocumentType: If the content type is not PDF, DOCX or plain text
    """
    base_type = (content_type or "").split(";")[0].strip().lower()
    if base_type == PDF_TYPE:
        return count_pdf_pages(data)
    if base_type == DOCX_TYPE:
        return count_docx_pages(data)
    if base_type == TEXT_TYPE:
        return count_text_pages(data)
    raise UnsupportedDocumentType("Unsupported file type")


async def process_and_upload_document_file(
    filename: str,
    content_type: Optional[str],
    data: bytes,
    folder_id: Optional[str] = None,
) -> DocumentFile:
    number_of_pages = count_pages(content_type, data)
    safe_name = sanitize_filename(filename or "document")
    logger.info(f"Processing document {safe_name} ({number_of_pages} pages)")
    return await save_rag_document(safe_name, number_of_pages, folder_id)
