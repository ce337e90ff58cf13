# functions/template_engine.py

"""
Placeholder substitution engine for CV templates.

Templates are plain HTML documents with three kinds of tokens:

    {{field}}              scalar  -> escaped value of the field, "" if absent
    {{.}}                  self    -> escaped current item (inside a section)
    {{#name}} ... {{/name}} section -> body repeated once per item of `name`

Rendering happens in two steps:

1) `compile_template` tokenizes the text and parses it into an immutable tree
   of TextNode / ScalarNode / SelfNode / SectionNode. Section tags are paired
   with a single stack pass:
     - an open tag pairs with the nearest following close tag of the same name
     - an open tag whose name is already open is literal text (no same-name
       nesting), so the outer tag still pairs with the nearest close
     - close tags without an open partner, open tags never closed, and tags
       crossing another section's boundary are emitted as literal text

2) `render_nodes` walks the tree with a scope stack (current item first, then
   enclosing items, then the record). Sections pick a formatter by name from
   `SECTION_FORMATTERS`; names without an entry use `GenericFormatter`, which
   renders the section body once per item. `bullets` always renders fixed
   `<li>` items. A section name resolves against the current item only;
   scalars also fall back to enclosing items and the record.

Invariants:
- every interpolated value goes through `escape_html`
- a missing / empty array renders its whole section as ""
- a resolved token never leaves `{{...}}` residue in the output
- rendering is pure: the only I/O is `render_template` reading the asset
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import structlog

from cv_templates.cv_templates import load_template
from functions.errors import RenderError
from functions.utils.security_functions import escape_html

logger = structlog.get_logger().bind(module="template_engine")

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(r"\{\{\s*([#/]?)\s*(\.|[A-Za-z_][\w-]*)\s*\}\}")

TEXT = "text"
SCALAR = "scalar"
SELF = "self"
OPEN = "open"
CLOSE = "close"


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    raw: str


def tokenize(template: str) -> List[Token]:
    """Split template text into text / scalar / self / open / close tokens."""
    tokens: List[Token] = []
    pos = 0
    for match in _TOKEN_RE.finditer(template):
        if match.start() > pos:
            text = template[pos:match.start()]
            tokens.append(Token(TEXT, text, text))

        sigil, name, raw = match.group(1), match.group(2), match.group(0)
        if name == ".":
            # {{#.}} / {{/.}} are not sections
            tokens.append(Token(SELF, name, raw) if not sigil else Token(TEXT, raw, raw))
        elif sigil == "#":
            tokens.append(Token(OPEN, name, raw))
        elif sigil == "/":
            tokens.append(Token(CLOSE, name, raw))
        else:
            tokens.append(Token(SCALAR, name, raw))
        pos = match.end()

    if pos < len(template):
        tokens.append(Token(TEXT, template[pos:], template[pos:]))
    return tokens


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextNode:
    text: str


@dataclass(frozen=True)
class ScalarNode:
    name: str


@dataclass(frozen=True)
class SelfNode:
    pass


@dataclass(frozen=True)
class SectionNode:
    name: str
    children: Tuple["Node", ...]


Node = Union[TextNode, ScalarNode, SelfNode, SectionNode]


def _pair_sections(tokens: Sequence[Token]) -> Dict[int, int]:
    """Map index of each matched open token to the index of its close token."""
    pairs: Dict[int, int] = {}
    stack: List[int] = []

    for i, tok in enumerate(tokens):
        if tok.kind == OPEN:
            if any(tokens[j].value == tok.value for j in stack):
                continue
            stack.append(i)
        elif tok.kind == CLOSE:
            for depth in range(len(stack) - 1, -1, -1):
                if tokens[stack[depth]].value == tok.value:
                    pairs[stack[depth]] = i
                    # anything opened after the matched tag was never closed
                    del stack[depth:]
                    break

    return pairs


def _build(tokens: Sequence[Token], start: int, end: int, pairs: Dict[int, int]) -> Tuple[Node, ...]:
    nodes: List[Node] = []
    i = start
    while i < end:
        tok = tokens[i]
        if tok.kind == OPEN and i in pairs:
            close = pairs[i]
            nodes.append(SectionNode(tok.value, _build(tokens, i + 1, close, pairs)))
            i = close + 1
            continue

        if tok.kind == SCALAR:
            nodes.append(ScalarNode(tok.value))
        elif tok.kind == SELF:
            nodes.append(SelfNode())
        elif nodes and isinstance(nodes[-1], TextNode):
            nodes[-1] = TextNode(nodes[-1].text + tok.raw)
        else:
            nodes.append(TextNode(tok.raw))
        i += 1

    return tuple(nodes)


@lru_cache(maxsize=64)
def compile_template(template: str) -> Tuple[Node, ...]:
    """Parse template text into a node tree (cached per distinct text)."""
    tokens = tokenize(template)
    return _build(tokens, 0, len(tokens), _pair_sections(tokens))


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _field(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def _lookup(scopes: Sequence[Any], name: str) -> Any:
    """Resolve `name` against the innermost scope that defines it."""
    for scope in reversed(scopes):
        if isinstance(scope, Mapping) and name in scope:
            return scope[name]
    return None


def _as_items(value: Any) -> List[Any]:
    """Normalize a section's backing value into a list of items."""
    if value is None or value is False or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# ---------------------------------------------------------------------------
# Section formatters
# ---------------------------------------------------------------------------


class SectionFormatter:
    """Renders one item of a section. Subclasses ignore or use the body."""

    def render_item(
        self,
        item: Any,
        body: Tuple[Node, ...],
        scopes: Sequence[Any],
    ) -> str:
        raise NotImplementedError


class ExperienceFormatter(SectionFormatter):
    def render_item(self, item, body, scopes):
        bullets = "".join(
            f"        <li>{escape_html(b)}</li>\n" for b in _as_items(_field(item, "bullets"))
        )
        return (
            '<div class="cv-entry">\n'
            '  <div class="cv-entry-header">\n'
            f'    <h3 class="cv-entry-title">{escape_html(_field(item, "role"))}</h3>\n'
            f'    <span class="cv-entry-dates">{escape_html(_field(item, "dates"))}</span>\n'
            "  </div>\n"
            f'  <p class="cv-entry-subtitle">{escape_html(_field(item, "company"))}</p>\n'
            '  <ul class="cv-bullets">\n'
            f"{bullets}"
            "  </ul>\n"
            "</div>"
        )


class EducationFormatter(SectionFormatter):
    def render_item(self, item, body, scopes):
        school = _field(item, "school") or _field(item, "institution") or ""
        return (
            '<div class="cv-entry">\n'
            '  <div class="cv-entry-header">\n'
            f'    <h3 class="cv-entry-title">{escape_html(_field(item, "degree"))}</h3>\n'
            f'    <span class="cv-entry-dates">{escape_html(_field(item, "year"))}</span>\n'
            "  </div>\n"
            f'  <p class="cv-entry-subtitle">{escape_html(school)}</p>\n'
            "</div>"
        )


class SkillFormatter(SectionFormatter):
    def render_item(self, item, body, scopes):
        return f'<span class="cv-skill">{escape_html(item)}</span>'


class BulletFormatter(SectionFormatter):
    """One `<li>` per bullet; the block body is not used."""

    def render_item(self, item, body, scopes):
        return f"<li>{escape_html(item)}</li>"


class GenericFormatter(SectionFormatter):
    """Render the section body with the item pushed on the scope stack.

    Inside the body `{{.}}` is the item itself and `{{key}}` is `item[key]`
    (falling back to enclosing scopes). Nested sections expand against the
    item's own arrays only.
    """

    def render_item(self, item, body, scopes):
        return render_nodes(body, [*scopes, item])


GENERIC_FORMATTER = GenericFormatter()

SECTION_FORMATTERS: Dict[str, SectionFormatter] = {
    "experience": ExperienceFormatter(),
    "education": EducationFormatter(),
    "skills": SkillFormatter(),
    "bullets": BulletFormatter(),
}


def formatter_for(section_name: str) -> SectionFormatter:
    return SECTION_FORMATTERS.get(section_name, GENERIC_FORMATTER)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_nodes(nodes: Sequence[Node], scopes: Sequence[Any]) -> str:
    """Render a parsed node tree against a scope stack (record first)."""
    out: List[str] = []
    for node in nodes:
        if isinstance(node, TextNode):
            out.append(node.text)
        elif isinstance(node, ScalarNode):
            out.append(escape_html(_lookup(scopes, node.name)))
        elif isinstance(node, SelfNode):
            # at record level there is no current item
            out.append(escape_html(scopes[-1]) if len(scopes) > 1 else "")
        else:
            # sections bind to the current item (or the record), never an outer item
            current = scopes[-1]
            items = _as_items(current.get(node.name) if isinstance(current, Mapping) else None)
            if not items:
                continue
            formatter = formatter_for(node.name)
            out.append("\n".join(formatter.render_item(item, node.children, scopes) for item in items))
    return "".join(out)


def _record_scope(record: Any) -> Dict[str, Any]:
    if record is None:
        return {}
    if hasattr(record, "model_dump"):
        return record.model_dump()
    if isinstance(record, Mapping):
        return dict(record)
    raise RenderError(f"Unsupported record type: {type(record).__name__}")


def render_template_string(template: str, record: Any) -> str:
    """Substitute every token in `template` using values from `record`."""
    scope = _record_scope(record)
    try:
        return render_nodes(compile_template(template), [scope])
    except RenderError:
        raise
    except Exception as exc:
        logger.exception("template_substitution_failed", error=str(exc))
        raise RenderError(f"Failed to render template: {exc}") from exc


def render_template(template_name: str, record: Any, *, templates_dir: Path | None = None) -> str:
    """Load the named template asset and render it with `record`."""
    template = load_template(template_name, templates_dir=templates_dir)
    html = render_template_string(template, record)
    logger.info("template_rendered", template_name=template_name, html_chars=len(html))
    return html


__all__ = [
    "Token",
    "tokenize",
    "TextNode",
    "ScalarNode",
    "SelfNode",
    "SectionNode",
    "compile_template",
    "SectionFormatter",
    "ExperienceFormatter",
    "EducationFormatter",
    "SkillFormatter",
    "BulletFormatter",
    "GenericFormatter",
    "GENERIC_FORMATTER",
    "SECTION_FORMATTERS",
    "formatter_for",
    "render_nodes",
    "render_template_string",
    "render_template",
]
