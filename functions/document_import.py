# functions/document_import.py

"""
Import / conversion collaborators for uploaded documents.

Uploads are handled as in-memory bytes:
- `extract_document` reads PDF, Word (.docx) and plain text files into an
  HTML rendition for the editor plus a plain text rendition.
- `convert_document` turns PDF into Word and Word into PDF.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import PurePath
from typing import List, Optional, Tuple
from zipfile import BadZipFile

import structlog
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from functions.document_export import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    render_pdf,
    safe_filename,
    text_to_docx,
    wrap_document_html,
)
from functions.errors import ValidationError
from functions.utils.common import get_section
from functions.utils.security_functions import escape_html
from schemas.api_schema import UploadedDocument

logger = structlog.get_logger().bind(module="document_import")

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

_KIND_BY_EXTENSION = {".pdf": "pdf", ".docx": "docx", ".txt": "txt"}
_KIND_BY_MEDIA_TYPE = {
    PDF_MEDIA_TYPE: "pdf",
    DOCX_MEDIA_TYPE: "docx",
    "text/plain": "txt",
}
_DOCX_HEADING_TAGS = {"Title": "h1", "Heading 1": "h1", "Heading 2": "h2", "Heading 3": "h3"}


def max_file_size() -> int:
    return int(get_section("uploads").get("max_file_size_bytes", DEFAULT_MAX_FILE_SIZE))


def detect_kind(filename: Optional[str], content_type: Optional[str]) -> Optional[str]:
    """Return "pdf" | "docx" | "txt" from the media type, else the extension."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in _KIND_BY_MEDIA_TYPE:
        return _KIND_BY_MEDIA_TYPE[media_type]
    suffix = PurePath(filename or "").suffix.lower()
    return _KIND_BY_EXTENSION.get(suffix)


def _check_upload(filename: Optional[str], data: bytes) -> None:
    if not data:
        raise ValidationError("No file uploaded")
    limit = max_file_size()
    if len(data) > limit:
        logger.warning("upload_too_large", filename=filename, size=len(data), limit=limit)
        raise ValidationError(
            "File too large",
            details={"size": len(data), "max_file_size_bytes": limit},
        )


def _lines_to_html(lines: List[str]) -> str:
    return "".join(f"<p>{escape_html(line)}</p>" for line in lines if line.strip())


def _pdf_text(data: bytes) -> str:
    try:
        reader = PdfReader(BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as exc:
        raise ValidationError("Could not read PDF file", details={"error": str(exc)}) from exc
    return "\n".join(pages)


def _open_docx(data: bytes):
    try:
        return Document(BytesIO(data))
    except (BadZipFile, PackageNotFoundError, KeyError) as exc:
        raise ValidationError("Could not read Word document", details={"error": str(exc)}) from exc


def _docx_html_and_text(data: bytes) -> Tuple[str, str]:
    document = _open_docx(data)
    html_parts: List[str] = []
    text_lines: List[str] = []
    open_list: Optional[str] = None

    for paragraph in document.paragraphs:
        text = paragraph.text.strip()
        if not text:
            continue
        text_lines.append(text)
        style = paragraph.style.name if paragraph.style is not None else ""

        list_tag = None
        if style.startswith("List Bullet"):
            list_tag = "ul"
        elif style.startswith("List Number"):
            list_tag = "ol"

        if open_list and list_tag != open_list:
            html_parts.append(f"</{open_list}>")
            open_list = None
        if list_tag:
            if open_list is None:
                html_parts.append(f"<{list_tag}>")
                open_list = list_tag
            html_parts.append(f"<li>{escape_html(text)}</li>")
            continue

        tag = _DOCX_HEADING_TAGS.get(style, "p")
        html_parts.append(f"<{tag}>{escape_html(text)}</{tag}>")

    if open_list:
        html_parts.append(f"</{open_list}>")
    return "".join(html_parts), "\n".join(text_lines)


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def extract_document(filename: Optional[str], content_type: Optional[str], data: bytes) -> UploadedDocument:
    """Read an uploaded file into {content (HTML), text}."""
    _check_upload(filename, data)
    kind = detect_kind(filename, content_type)
    logger.info("document_extract_start", filename=filename, kind=kind, size=len(data))

    if kind == "pdf":
        text = _pdf_text(data)
        content = _lines_to_html(text.splitlines())
    elif kind == "docx":
        content, text = _docx_html_and_text(data)
    elif kind == "txt":
        text = _decode_text(data)
        content = _lines_to_html(text.splitlines())
    else:
        raise ValidationError(
            "Unsupported file type. Please upload PDF, Word (.docx), or text files.",
            details={"filename": filename, "content_type": content_type},
        )

    logger.info("document_extract_done", filename=filename, kind=kind, text_chars=len(text))
    return UploadedDocument(content=content, text=text)


def convert_document(
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
    target_format: Optional[str],
) -> Tuple[bytes, str, str]:
    """
    Convert PDF → DOCX or DOCX → PDF.

    Returns (data, media_type, filename); the output file name keeps the
    upload's stem with the new extension.
    """
    _check_upload(filename, data)
    kind = detect_kind(filename, content_type)
    target = (target_format or "").strip().lower()
    stem = PurePath(filename or "document").stem

    logger.info("document_convert_start", filename=filename, source=kind, target=target)

    if kind == "pdf" and target == "docx":
        converted = text_to_docx(_pdf_text(data))
        return converted, DOCX_MEDIA_TYPE, safe_filename(stem, "docx")

    if kind == "docx" and target == "pdf":
        content, _ = _docx_html_and_text(data)
        page = wrap_document_html(content or "<p></p>", stem)
        converted = render_pdf(page, profile="document_pdf")
        return converted, PDF_MEDIA_TYPE, safe_filename(stem, "pdf")

    raise ValidationError(
        "Invalid conversion request",
        details={"source": kind, "target": target, "supported": ["pdf->docx", "docx->pdf"]},
    )


__all__ = [
    "DEFAULT_MAX_FILE_SIZE",
    "max_file_size",
    "detect_kind",
    "extract_document",
    "convert_document",
]
