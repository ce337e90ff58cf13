"""
Escaping and input-screening helpers
====================================

Everything that stands between user-supplied text and an output document or
an LLM prompt lives here:

1. HTML escaping
   - `escape_html` turns any value into text safe to interpolate into HTML.
     The ampersand is replaced first so entities introduced for `<`, `>`,
     `"` and `'` are never escaped twice.

2. Name / CSS sanitization
   - `sanitize_template_name` rejects template names that could leave the
     template directory.
   - `clean_css_string` strips characters that would end a quoted CSS value
     or the surrounding `<style>` block.

3. Prompt injection screening
   - `detect_injection` matches free text against the critical / suspicious
     regex lists configured in `parameters/parameters.yaml`:

         security:
           critical_patterns: [...]
           suspicious_patterns: [...]

     plus a special-character heuristic. Patterns are read once at import.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from functions.errors import ValidationError
from functions.utils.common import get_section
from schemas.internal_schema import InjectionDetectionResult

logger = structlog.get_logger().bind(module="utils.security")

# ---------------------------------------------------------------------------
# HTML escaping
# ---------------------------------------------------------------------------

# Order matters: "&" must be first.
_HTML_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)


def to_text(value: Any) -> str:
    """
    Stringify a template value.

    None and containers (lists, dicts) render as "" so that a missing or
    structured field never leaks "None" or a Python repr into a document.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict, set)):
        return ""
    return str(value)


def escape_html(value: Any) -> str:
    """Escape `&`, `<`, `>`, `"`, `'` in the stringified value."""
    text = to_text(value)
    for raw, entity in _HTML_REPLACEMENTS:
        text = text.replace(raw, entity)
    return text


# ---------------------------------------------------------------------------
# Name / CSS sanitization
# ---------------------------------------------------------------------------

_TEMPLATE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_CSS_UNSAFE_RE = re.compile(r"[\"'\\;{}<>\x00-\x1f\x7f]")


def sanitize_template_name(name: Any) -> str:
    """
    Return the template name if it is a bare identifier.

    Raises ValidationError for anything containing path separators, dots,
    whitespace or other characters that could point outside the template
    directory.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Template name is required")

    cleaned = name.strip()
    if not _TEMPLATE_NAME_RE.match(cleaned):
        logger.warning("template_name_rejected", template_name=cleaned[:100])
        raise ValidationError(
            f"Invalid template name: {cleaned[:100]!r}",
            details={"allowed": "letters, digits, '-' and '_'"},
        )
    return cleaned


def clean_css_string(value: str) -> str:
    """Drop quotes, backslashes, braces, semicolons, angle brackets and control chars."""
    return _CSS_UNSAFE_RE.sub("", value).strip()


# ---------------------------------------------------------------------------
# Prompt injection screening
# ---------------------------------------------------------------------------

_security = get_section("security")
CRITICAL_PATTERNS: tuple[str, ...] = tuple(_security.get("critical_patterns", []) or [])
SUSPICIOUS_PATTERNS: tuple[str, ...] = tuple(_security.get("suspicious_patterns", []) or [])
CONTROL_CHARS_EXCEPT_WHITESPACE: str = _security.get(
    "control_chars_except_whitespace",
    r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]",
)


def detect_injection(text: str) -> InjectionDetectionResult:
    """
    Analyze a single string for potential prompt injection.

    Returns:
        InjectionDetectionResult:
            - risk 1.0 and unsafe on any critical pattern
            - risk 0.6 on a suspicious pattern
            - risk 0.5 when more than 30% of characters are symbols
            - safe zero-risk result for empty / non-string input
    """
    if not isinstance(text, str) or not text.strip():
        return InjectionDetectionResult.safe()

    detected: list[str] = []
    risk_score = 0.0

    for pattern in CRITICAL_PATTERNS:
        if re.search(pattern, text, re.IGNORECASE):
            detected.append(f"CRITICAL: {pattern}")
            risk_score = 1.0

    if risk_score < 1.0:
        for pattern in SUSPICIOUS_PATTERNS:
            if re.search(pattern, text, re.IGNORECASE):
                detected.append(f"SUSPICIOUS: {pattern}")
                risk_score = max(risk_score, 0.6)

    special_ratio = sum(1 for c in text if not c.isalnum() and not c.isspace()) / max(len(text), 1)
    if special_ratio > 0.3:
        detected.append("HEURISTIC: HIGH_SPECIAL_CHAR_RATIO")
        risk_score = max(risk_score, 0.5)

    return InjectionDetectionResult(
        is_safe=(risk_score < 0.8),
        detected_patterns=list(dict.fromkeys(detected)),
        risk_score=risk_score,
    )


def strip_control_chars(text: str) -> str:
    """Remove non-whitespace control characters, keep line structure."""
    return re.sub(CONTROL_CHARS_EXCEPT_WHITESPACE, "", text)


def screen_prompt_input(text: str, *, field: str) -> str:
    """
    Guard free text on its way into an LLM prompt.

    Control characters are removed; unsafe text raises ValidationError,
    suspicious text is logged and passed through.
    """
    result = detect_injection(text)
    if not result.is_safe:
        logger.warning(
            "prompt_input_blocked",
            field=field,
            risk_score=result.risk_score,
            patterns=result.detected_patterns,
        )
        raise ValidationError(
            f"The {field} contains instructions that cannot be processed",
            details={"patterns": result.detected_patterns},
        )
    if result.has_findings:
        logger.info(
            "prompt_input_flagged",
            field=field,
            risk_score=result.risk_score,
            patterns=result.detected_patterns,
        )
    return strip_control_chars(text)


__all__ = [
    "to_text",
    "escape_html",
    "sanitize_template_name",
    "clean_css_string",
    "detect_injection",
    "strip_control_chars",
    "screen_prompt_input",
]
