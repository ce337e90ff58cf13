# functions/document_export.py

"""
Export collaborators: HTML → PDF through headless Chromium (Playwright) and
editor HTML / plain text → Word (.docx) through python-docx.
"""

from __future__ import annotations

import re
from io import BytesIO
from typing import Any, Dict, Iterable, Optional, Tuple

import structlog
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from docx import Document
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from cv_templates.cv_templates import render_document_page
from functions.errors import CollaboratorError, ValidationError
from functions.utils.common import get_section

logger = structlog.get_logger().bind(module="document_export")

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

EXPORT_FORMATS = ("pdf", "docx")

_HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
_LIST_STYLES = {"ul": "List Bullet", "ol": "List Number"}
_BOLD_TAGS = {"strong", "b"}
_ITALIC_TAGS = {"em", "i"}
_UNDERLINE_TAGS = {"u"}
_UNSAFE_FILENAME_RE = re.compile(r"[^\w.\- ]+")
_WHITESPACE_RE = re.compile(r"\s+")


def _pdf_options(profile: str) -> Dict[str, Any]:
    cfg = get_section("export").get(profile, {}) or {}
    margin = cfg.get("margin", "20px")
    return {
        "format": cfg.get("format", "A4"),
        "print_background": bool(cfg.get("print_background", True)),
        "margin": {"top": margin, "right": margin, "bottom": margin, "left": margin},
        "timeout_ms": cfg.get("timeout_ms", 30000),
    }


def render_pdf(html: str, *, profile: str = "pdf") -> bytes:
    """
    Print an HTML document to PDF with headless Chromium.

    `profile` selects the export.<profile> block of parameters.yaml
    ("pdf" for CVs, "document_pdf" for editor documents).
    """
    if not html or not html.strip():
        raise ValidationError("HTML content is required")

    options = _pdf_options(profile)
    timeout_ms = options.pop("timeout_ms")
    logger.info("pdf_render_start", profile=profile, html_chars=len(html))
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(args=["--no-sandbox"])
            try:
                page = browser.new_page()
                page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
                pdf_bytes = page.pdf(**options)
            finally:
                browser.close()
    except PlaywrightError as exc:
        logger.error("pdf_render_failed", error=str(exc))
        raise CollaboratorError("Failed to generate PDF", details={"error": str(exc)}) from exc

    logger.info("pdf_render_done", bytes=len(pdf_bytes))
    return pdf_bytes


def wrap_document_html(content: str, title: str = "document") -> str:
    return render_document_page(content, title)


# ---------------------------------------------------------------------
# Word export
# ---------------------------------------------------------------------

def _run_format(node: NavigableString, root: Tag) -> Tuple[bool, bool, bool]:
    bold = italic = underline = False
    for parent in node.parents:
        if parent is root:
            break
        name = parent.name
        bold = bold or name in _BOLD_TAGS
        italic = italic or name in _ITALIC_TAGS
        underline = underline or name in _UNDERLINE_TAGS
    return bold, italic, underline


def _add_runs(paragraph, element: Tag) -> None:
    for node in element.descendants:
        if not isinstance(node, NavigableString) or isinstance(node, Comment):
            continue
        text = _WHITESPACE_RE.sub(" ", str(node))
        if not text.strip() and not paragraph.runs:
            continue
        bold, italic, underline = _run_format(node, element)
        run = paragraph.add_run(text)
        run.bold = bold or None
        run.italic = italic or None
        run.underline = underline or None


def _block_children(soup: BeautifulSoup) -> Iterable[Any]:
    root = soup.body if soup.body is not None else soup
    return list(root.children)


def _save(document) -> bytes:
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def html_to_docx(content: str, title: str = "document") -> bytes:
    """
    Convert an editor HTML fragment to a .docx file.

    Headings map to Word headings, list items to "List Bullet" /
    "List Number" paragraphs, everything else to paragraphs whose
    bold / italic / underline runs follow the inline tags.
    """
    soup = BeautifulSoup(content or "", "html.parser")
    document = Document()
    document.core_properties.title = title or "document"
    added = 0

    for child in _block_children(soup):
        if isinstance(child, NavigableString):
            text = str(child).strip()
            if text and not isinstance(child, Comment):
                document.add_paragraph(text)
                added += 1
            continue
        if not isinstance(child, Tag):
            continue

        name = child.name
        if name in _HEADING_LEVELS:
            text = child.get_text(" ", strip=True)
            if text:
                document.add_heading(text, level=_HEADING_LEVELS[name])
                added += 1
        elif name in _LIST_STYLES:
            for item in child.find_all("li", recursive=False):
                paragraph = document.add_paragraph(style=_LIST_STYLES[name])
                _add_runs(paragraph, item)
                added += 1
        elif name in ("br", "script", "style"):
            continue
        else:
            if not child.get_text(strip=True):
                continue
            paragraph = document.add_paragraph()
            _add_runs(paragraph, child)
            added += 1

    if not added:
        document.add_paragraph("Empty document")

    logger.info("docx_built", paragraphs=added, title=title)
    return _save(document)


def text_to_docx(text: str) -> bytes:
    document = Document()
    added = 0
    for line in (text or "").splitlines():
        if line.strip():
            document.add_paragraph(line.strip())
            added += 1
    if not added:
        document.add_paragraph("Empty document")
    return _save(document)


def safe_filename(title: Optional[str], extension: str) -> str:
    stem = _UNSAFE_FILENAME_RE.sub("", (title or "").strip()).strip(" .") or "document"
    return f"{stem}.{extension}"


def export_document(content: str, title: str = "document", fmt: str = "pdf") -> Tuple[bytes, str, str]:
    """Export editor HTML as PDF or Word. Returns (data, media_type, filename)."""
    fmt = (fmt or "").strip().lower()
    if not content or not content.strip():
        raise ValidationError("Content is required")
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            "Invalid format. Use 'pdf' or 'docx'",
            details={"format": fmt, "supported": list(EXPORT_FORMATS)},
        )

    if fmt == "pdf":
        data = render_pdf(wrap_document_html(content, title), profile="document_pdf")
        return data, PDF_MEDIA_TYPE, safe_filename(title, "pdf")

    data = html_to_docx(content, title)
    return data, DOCX_MEDIA_TYPE, safe_filename(title, "docx")


__all__ = [
    "PDF_MEDIA_TYPE",
    "DOCX_MEDIA_TYPE",
    "EXPORT_FORMATS",
    "render_pdf",
    "wrap_document_html",
    "html_to_docx",
    "text_to_docx",
    "safe_filename",
    "export_document",
]
