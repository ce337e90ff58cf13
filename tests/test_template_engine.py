# tests/test_template_engine.py
"""
Unit Tests for the placeholder substitution engine
==================================================

Covers scalar / self / section tokens, the per-section formatters (nested
bullets included), the generic formatter used for every other section name,
section scoping, HTML escaping, and the handling of malformed section tags.

Run with verbosity for best readability:
    python -m unittest -v tests/test_template_engine.py
"""

import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cv_templates.cv_templates import TEMPLATES
from functions.errors import TemplateNotFound, ValidationError
from functions.template_engine import (
    GENERIC_FORMATTER,
    SECTION_FORMATTERS,
    SectionNode,
    TextNode,
    compile_template,
    formatter_for,
    render_template,
    render_template_string,
    tokenize,
)
from schemas.cv_schema import CVRecord
from tests.utils_test_support import PrettyTestCase, full_record, minimal_record


class TestTokenizeAndParse(PrettyTestCase):
    def test_tokenize_kinds(self):
        kinds = [t.kind for t in tokenize("a{{name}}b{{#skills}}{{.}}{{/skills}}")]
        self.assertEqual(kinds, ["text", "scalar", "text", "open", "self", "close"])

    def test_whitespace_inside_braces_is_allowed(self):
        self.assertEqual(render_template_string("{{ name }}", {"name": "Ann"}), "Ann")

    def test_section_becomes_node(self):
        nodes = compile_template("x{{#tags}}y{{/tags}}z")
        self.assertEqual(nodes[0], TextNode("x"))
        self.assertIsInstance(nodes[1], SectionNode)
        self.assertEqual(nodes[1].name, "tags")
        self.assertEqual(nodes[2], TextNode("z"))

    def test_plain_braces_are_text(self):
        html = render_template_string("{{ not a token }} {name}", {"name": "x"})
        self.assertEqual(html, "{{ not a token }} {name}")


class TestScalarsAndEscaping(PrettyTestCase):
    def test_sample_record_renders_name_title_and_skills_in_order(self):
        template = "<h1>{{name}}</h1><p>{{title}}</p><div>{{#skills}}{{.}}{{/skills}}</div>"
        html = render_template_string(template, minimal_record())

        self.assertIn("John Smith", html)
        self.assertIn("Senior Software Engineer", html)
        js = html.index('<span class="cv-skill">JavaScript</span>')
        aws = html.index('<span class="cv-skill">AWS</span>')
        self.assertLess(js, aws)

    def test_missing_scalar_renders_empty(self):
        self.assertEqual(render_template_string("[{{email}}]", {"name": "x"}), "[]")

    def test_none_and_numbers(self):
        html = render_template_string("{{a}}|{{b}}|{{c}}", {"a": None, "b": 42, "c": 1.5})
        self.assertEqual(html, "|42|1.5")

    def test_special_characters_are_escaped(self):
        record = {"name": "<script>alert(\"x\")</script> & 'q'"}
        html = render_template_string("<h1>{{name}}</h1>", record)

        self.assertNotIn("<script>", html)
        self.assertEqual(
            html,
            "<h1>&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt; &amp; &#039;q&#039;</h1>",
        )

    def test_values_in_sections_are_escaped(self):
        record = full_record()
        record["experience"][0]["bullets"] = ["<b>bold</b>"]
        record["skills"] = ["C&C++"]
        html = render_template_string("{{#experience}}{{/experience}}{{#skills}}{{/skills}}", record)

        self.assertIn("<li>&lt;b&gt;bold&lt;/b&gt;</li>", html)
        self.assertIn('<span class="cv-skill">C&amp;C++</span>', html)
        self.assertNotIn("<b>bold</b>", html)

    def test_self_token_at_record_level_is_empty(self):
        self.assertEqual(render_template_string("a{{.}}b", {"name": "x"}), "ab")

    def test_accepts_cv_record_model(self):
        record = CVRecord(name="Ann", title="Dev")
        self.assertEqual(render_template_string("{{name}} - {{title}}", record), "Ann - Dev")


class TestSectionFormatters(PrettyTestCase):
    def test_formatter_selection_by_name(self):
        self.assertIs(formatter_for("experience"), SECTION_FORMATTERS["experience"])
        self.assertIs(formatter_for("education"), SECTION_FORMATTERS["education"])
        self.assertIs(formatter_for("skills"), SECTION_FORMATTERS["skills"])
        self.assertIs(formatter_for("bullets"), SECTION_FORMATTERS["bullets"])
        self.assertIs(formatter_for("projects"), GENERIC_FORMATTER)

    def test_experience_entry(self):
        html = render_template_string("{{#experience}}{{/experience}}", full_record())

        self.assertIn('<h3 class="cv-entry-title">Lead Engineer</h3>', html)
        self.assertIn('<span class="cv-entry-dates">2020 - Present</span>', html)
        self.assertIn('<p class="cv-entry-subtitle">Acme</p>', html)
        self.assertIn("<li>Built the ingestion layer</li>", html)
        self.assertIn("<li>Mentored four engineers</li>", html)
        self.assertEqual(html.count('<div class="cv-entry">'), 2)
        self.assertLess(html.index("Acme"), html.index("Initech"))

    def test_experience_section_body_is_ignored(self):
        html = render_template_string("{{#experience}}IGNORED{{/experience}}", full_record())
        self.assertNotIn("IGNORED", html)

    def test_education_institution_fallback(self):
        record = {"education": [{"degree": "PhD", "institution": "MIT", "year": "2020"}]}
        html = render_template_string("{{#education}}{{/education}}", record)

        self.assertIn('<p class="cv-entry-subtitle">MIT</p>', html)
        self.assertIn('<h3 class="cv-entry-title">PhD</h3>', html)

    def test_items_are_joined_with_newline(self):
        html = render_template_string("{{#skills}}{{/skills}}", {"skills": ["a", "b"]})
        self.assertEqual(html, '<span class="cv-skill">a</span>\n<span class="cv-skill">b</span>')

    def test_empty_and_missing_arrays_render_nothing(self):
        template = "[{{#experience}}{{/experience}}][{{#education}}{{/education}}][{{#skills}}{{.}}{{/skills}}]"
        self.assertEqual(render_template_string(template, {"experience": [], "skills": []}), "[][][]")

    def test_generic_section_with_nested_bullets(self):
        record = {"projects": [{"title": "P1", "bullets": ["a", "b"]}, {"title": "P2", "bullets": []}]}
        template = "{{#projects}}<b>{{title}}</b>{{#bullets}}<li>{{.}}</li>{{/bullets}}{{/projects}}"
        html = render_template_string(template, record)

        self.assertEqual(html, "<b>P1</b><li>a</li>\n<li>b</li>\n<b>P2</b>")

    def test_nested_bullets_ignore_block_markup(self):
        record = {"projects": [{"title": "P1", "bullets": ["a", "<b>"]}]}
        template = "{{#projects}}{{title}}:{{#bullets}}<p>{{.}}</p>{{/bullets}}{{/projects}}"
        html = render_template_string(template, record)

        self.assertEqual(html, "P1:<li>a</li>\n<li>&lt;b&gt;</li>")

    def test_nested_section_does_not_reach_outer_item_arrays(self):
        record = {"projects": [{"title": "P", "bullets": ["pb"], "links": [{"url": "u"}]}]}
        template = "{{#projects}}{{#links}}{{url}}{{#bullets}}[{{.}}]{{/bullets}}{{/links}}{{/projects}}"
        self.assertEqual(render_template_string(template, record), "u")

    def test_nested_section_does_not_reach_record_arrays(self):
        record = {"skills": ["Go"], "projects": [{"title": "P"}]}
        html = render_template_string("{{#projects}}{{title}}{{#skills}}{{/skills}}{{/projects}}", record)
        self.assertEqual(html, "P")

    def test_generic_section_falls_back_to_enclosing_scope(self):
        record = {"name": "Ann", "projects": [{"title": "P1"}]}
        html = render_template_string("{{#projects}}{{title}} by {{name}}{{/projects}}", record)
        self.assertEqual(html, "P1 by Ann")

    def test_generic_section_over_scalar_value(self):
        html = render_template_string("{{#summary}}<p>{{.}}</p>{{/summary}}", {"summary": "Hi & bye"})
        self.assertEqual(html, "<p>Hi &amp; bye</p>")


class TestMalformedTags(PrettyTestCase):
    def test_unmatched_close_is_literal(self):
        self.assertEqual(render_template_string("{{/skills}}x", {"skills": ["a"]}), "{{/skills}}x")

    def test_unclosed_open_is_literal(self):
        self.assertEqual(render_template_string("{{#tags}}abc", {"tags": ["a"]}), "{{#tags}}abc")

    def test_same_name_nesting_pairs_outer_with_nearest_close(self):
        html = render_template_string("{{#tags}}[{{#tags}}{{.}}{{/tags}}]", {"tags": ["x", "y"]})
        self.assertEqual(html, "[{{#tags}}x\n[{{#tags}}y]")

    def test_crossing_sections(self):
        html = render_template_string("{{#a}}1{{#b}}2{{/a}}3{{/b}}", {"a": ["x"], "b": ["y"]})
        self.assertEqual(html, "1{{#b}}23{{/b}}")

    def test_dot_section_tags_are_literal(self):
        self.assertEqual(render_template_string("{{#.}}", {}), "{{#.}}")


class TestTemplateAssets(PrettyTestCase):
    def test_bundled_templates_leave_no_residue_for_empty_sections(self):
        record = {"name": "Ann", "title": "Dev", "experience": [], "education": [], "skills": []}
        for name in TEMPLATES:
            with self.subTest(template=name):
                html = render_template(name, record)
                self.assertNotIn("{{", html)
                self.assertNotIn("}}", html)
                self.assertNotIn('class="cv-entry"', html)
                self.assertNotIn('class="cv-skill"', html)
                self.assertIn("Ann", html)

    def test_bundled_templates_render_full_record(self):
        for name in TEMPLATES:
            with self.subTest(template=name):
                html = render_template(name, full_record())
                self.assertIn("Jane Doe", html)
                self.assertIn("Lead Engineer", html)
                self.assertIn("TU Berlin", html)
                self.assertIn('<span class="cv-skill">Airflow</span>', html)
                self.assertNotIn("{{", html)

    def test_rendering_is_deterministic(self):
        record = full_record()
        self.assertEqual(render_template("modern", record), render_template("modern", record))

    def test_custom_templates_dir(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "mini.html").write_text("<p>{{name}}</p>", encoding="utf-8")
            html = render_template("mini", {"name": "Ann"}, templates_dir=Path(tmp))
        self.assertEqual(html, "<p>Ann</p>")

    def test_unknown_template(self):
        with self.assertRaises(TemplateNotFound):
            render_template("does-not-exist", {"name": "x"})

    def test_path_traversal_is_rejected(self):
        for bad in ("../secrets", "a/b", "simple.html", ""):
            with self.subTest(name=bad):
                with self.assertRaises(ValidationError):
                    render_template(bad, {"name": "x"})


if __name__ == "__main__":
    unittest.main(verbosity=2)
