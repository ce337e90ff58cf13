# tests/test_document_export.py
"""
Unit Tests for functions.document_export
========================================

Word export runs for real through python-docx; the Playwright browser is
mocked so PDF tests need no Chromium install.
"""

import sys
import unittest
from io import BytesIO
from pathlib import Path
from unittest import mock

from docx import Document

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from functions import document_export
from functions.document_export import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    export_document,
    html_to_docx,
    render_pdf,
    safe_filename,
    text_to_docx,
)
from functions.errors import CollaboratorError, ValidationError
from tests.utils_test_support import PrettyTestCase, read_docx


def _fake_playwright(pdf_bytes=b"%PDF-1.4 fake", error=None):
    """Build a sync_playwright() stand-in and return (factory, page)."""
    page = mock.MagicMock()
    if error is not None:
        page.pdf.side_effect = error
    else:
        page.pdf.return_value = pdf_bytes
    browser = mock.MagicMock()
    browser.new_page.return_value = page
    pw = mock.MagicMock()
    pw.chromium.launch.return_value = browser

    context = mock.MagicMock()
    context.__enter__.return_value = pw
    context.__exit__.return_value = False
    return mock.Mock(return_value=context), page, browser


class TestRenderPdf(PrettyTestCase):
    def test_prints_a4_with_margins(self):
        factory, page, browser = _fake_playwright()
        with mock.patch.object(document_export, "sync_playwright", factory):
            data = render_pdf("<html><body>Hi</body></html>")

        self.assertEqual(data, b"%PDF-1.4 fake")
        page.set_content.assert_called_once()
        kwargs = page.pdf.call_args.kwargs
        self.assertEqual(kwargs["format"], "A4")
        self.assertTrue(kwargs["print_background"])
        self.assertEqual(kwargs["margin"], {"top": "20px", "right": "20px", "bottom": "20px", "left": "20px"})
        browser.close.assert_called_once()

    def test_document_profile_uses_mm_margins(self):
        factory, page, _ = _fake_playwright()
        with mock.patch.object(document_export, "sync_playwright", factory):
            render_pdf("<p>x</p>", profile="document_pdf")
        self.assertEqual(page.pdf.call_args.kwargs["margin"]["top"], "20mm")

    def test_browser_failure_is_collaborator_error(self):
        factory, _, browser = _fake_playwright(error=document_export.PlaywrightError("crashed"))
        with mock.patch.object(document_export, "sync_playwright", factory):
            with self.assertRaises(CollaboratorError):
                render_pdf("<p>x</p>")
        browser.close.assert_called_once()

    def test_empty_html(self):
        with self.assertRaises(ValidationError):
            render_pdf("   ")


class TestHtmlToDocx(PrettyTestCase):
    def test_headings_lists_and_paragraphs(self):
        content = (
            "<h1>Title</h1><h2>Sub</h2><p>Plain <strong>bold</strong> <em>it</em> <u>under</u></p>"
            "<ul><li>one</li><li>two</li></ul><ol><li>first</li></ol>"
        )
        paragraphs = read_docx(html_to_docx(content, "Doc"))

        self.assertIn(("Title", "Heading 1"), paragraphs)
        self.assertIn(("Sub", "Heading 2"), paragraphs)
        self.assertIn(("one", "List Bullet"), paragraphs)
        self.assertIn(("two", "List Bullet"), paragraphs)
        self.assertIn(("first", "List Number"), paragraphs)

    def test_inline_formatting_becomes_runs(self):
        data = html_to_docx("<p>Plain <strong>bold</strong> <em>it</em> <u>under</u></p>")
        paragraph = Document(BytesIO(data)).paragraphs[0]
        runs = {run.text: run for run in paragraph.runs}

        self.assertTrue(runs["bold"].bold)
        self.assertTrue(runs["it"].italic)
        self.assertTrue(runs["under"].underline)
        self.assertFalse(runs["Plain "].bold)

    def test_title_is_stored(self):
        data = html_to_docx("<p>x</p>", "My CV")
        self.assertEqual(Document(BytesIO(data)).core_properties.title, "My CV")

    def test_empty_content(self):
        self.assertEqual(read_docx(html_to_docx("", "Doc")), [("Empty document", "Normal")])
        self.assertEqual(read_docx(html_to_docx("<p>  </p><br>", "Doc"))[0][0], "Empty document")

    def test_text_to_docx(self):
        paragraphs = read_docx(text_to_docx("line one\n\n  line two  \n"))
        self.assertEqual([p[0] for p in paragraphs], ["line one", "line two"])


class TestExportDocument(PrettyTestCase):
    def test_docx(self):
        data, media_type, filename = export_document("<p>Hello</p>", "Cover Letter", "docx")
        self.assertEqual(media_type, DOCX_MEDIA_TYPE)
        self.assertEqual(filename, "Cover Letter.docx")
        self.assertEqual(read_docx(data)[0][0], "Hello")

    def test_pdf_wraps_content(self):
        with mock.patch.object(document_export, "render_pdf", return_value=b"%PDF") as render:
            data, media_type, filename = export_document("<p>Hello</p>", "Letter", "PDF")

        self.assertEqual((data, media_type, filename), (b"%PDF", PDF_MEDIA_TYPE, "Letter.pdf"))
        page_html = render.call_args.args[0]
        self.assertIn("<p>Hello</p>", page_html)
        self.assertIn("<title>Letter</title>", page_html)
        self.assertEqual(render.call_args.kwargs["profile"], "document_pdf")

    def test_invalid_format(self):
        with self.assertRaises(ValidationError) as ctx:
            export_document("<p>x</p>", "doc", "rtf")
        self.assertEqual(ctx.exception.details["supported"], ["pdf", "docx"])

    def test_missing_content(self):
        with self.assertRaises(ValidationError):
            export_document("", "doc", "docx")

    def test_safe_filename(self):
        self.assertEqual(safe_filename('../"evil"/name', "pdf"), "evilname.pdf")
        self.assertEqual(safe_filename("", "docx"), "document.docx")


if __name__ == "__main__":
    unittest.main(verbosity=2)
