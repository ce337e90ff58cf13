# tests/test_render_service.py
"""
Unit Tests for functions.render_service
=======================================

The request boundary answers ({"html"}, 200) on success, 400 for missing /
invalid input and 500 for template or rendering failures; it never raises.
"""

import sys
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from functions import render_service
from functions.errors import ValidationError
from functions.render_service import coerce_record, handle_render_request, render_cv
from tests.utils_test_support import PrettyTestCase, full_record, minimal_record


class TestCoerceRecord(PrettyTestCase):
    def test_nulls_and_numbers_are_coerced(self):
        record = coerce_record({"name": None, "phone": 5550100, "experience": None, "skills": None})
        self.assertEqual(record.name, "")
        self.assertEqual(record.phone, "5550100")
        self.assertEqual(record.experience, [])
        self.assertEqual(record.skills, [])

    def test_bools_are_lowercased(self):
        record = coerce_record({"location": True, "skills": [False, "Go"]})
        self.assertEqual(record.location, "true")
        self.assertEqual(record.skills, ["false", "Go"])

    def test_object_skill_is_rejected(self):
        with self.assertRaises(ValidationError):
            coerce_record({"skills": [{"name": "Go"}]})

    def test_extra_keys_are_kept(self):
        record = coerce_record({"name": "Ann", "projects": [{"title": "P"}]})
        self.assertEqual(record.model_dump()["projects"], [{"title": "P"}])

    def test_non_object_is_rejected(self):
        with self.assertRaises(ValidationError):
            coerce_record(["not", "a", "record"])

    def test_wrong_shape_is_rejected_with_details(self):
        with self.assertRaises(ValidationError) as ctx:
            coerce_record({"skills": "Python"})
        self.assertIn("errors", ctx.exception.details)


class TestRenderCV(PrettyTestCase):
    def test_renders_and_applies_fonts(self):
        html = render_cv("simple", full_record(), font_family="Roboto", font_size="12px")
        self.assertIn("Jane Doe", html)
        self.assertIn("calc(12px * 2.5)", html)

    def test_no_font_overrides_leaves_template_styles(self):
        html = render_cv("simple", full_record())
        self.assertNotIn("!important", html)

    def test_missing_template_name(self):
        with self.assertRaises(ValidationError):
            render_cv("", full_record())


class TestHandleRenderRequest(PrettyTestCase):
    def test_success(self):
        body, status = handle_render_request({"templateName": "modern", "data": minimal_record()})
        self.assertEqual(status, 200)
        self.assertIn("John Smith", body["html"])
        self.assertIn('<span class="cv-skill">JavaScript</span>', body["html"])

    def test_missing_template_name_or_data_is_400(self):
        for payload in ({"data": minimal_record()}, {"templateName": "simple"}, {}, None):
            with self.subTest(payload=payload):
                body, status = handle_render_request(payload)
                self.assertEqual(status, 400)
                self.assertEqual(body["error"], "Template name and data are required")
                self.assertEqual(body["error_code"], "VALIDATION_ERROR")

    def test_unknown_template_is_500(self):
        body, status = handle_render_request({"templateName": "nope", "data": minimal_record()})
        self.assertEqual(status, 500)
        self.assertEqual(body["error_code"], "TEMPLATE_NOT_FOUND")
        self.assertIn("simple", body["details"]["available"])

    def test_bad_template_name_is_400(self):
        body, status = handle_render_request({"templateName": "../x", "data": minimal_record()})
        self.assertEqual(status, 400)
        self.assertEqual(body["error_code"], "VALIDATION_ERROR")

    def test_unexpected_failure_is_500(self):
        with mock.patch.object(render_service, "render_template", side_effect=RuntimeError("boom")):
            body, status = handle_render_request({"templateName": "simple", "data": minimal_record()})
        self.assertEqual(status, 500)
        self.assertEqual(body["error"], "boom")
        self.assertEqual(body["error_code"], "RENDER_FAILED")


if __name__ == "__main__":
    unittest.main(verbosity=2)
