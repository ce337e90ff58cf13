# functions/style_injector.py

"""
Font overrides for rendered CV HTML.

`apply_font_styles` inserts a `<style>` block right before the first
`</head>` that forces the chosen font family / size on the body and every
descendant, and scales h1-h4 from the base size with CSS `calc()`.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

import structlog

from functions.utils.common import get_section
from functions.utils.security_functions import clean_css_string

logger = structlog.get_logger().bind(module="style_injector")

DEFAULT_FONT_SIZE = "14px"

HEADING_SCALE: Dict[str, float] = {
    "h1": 2.5,
    "h2": 1.75,
    "h3": 1.4,
    "h4": 1.125,
}

_CSS_LENGTH_RE = re.compile(r"^\d+(\.\d+)?(px|pt|em|rem|%)$")
_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)


def _style_config() -> tuple[str, Dict[str, float]]:
    cfg = get_section("style")
    default_size = str(cfg.get("default_font_size") or DEFAULT_FONT_SIZE)
    scale = cfg.get("heading_scale") or HEADING_SCALE
    return default_size, {tag: float(factor) for tag, factor in scale.items()}


def _clean_font_size(font_size: Optional[str]) -> Optional[str]:
    if not font_size:
        return None
    size = str(font_size).strip().lower()
    if not _CSS_LENGTH_RE.match(size):
        logger.warning("font_size_ignored", font_size=str(font_size)[:50])
        return None
    return size


def build_font_style_block(font_family: Optional[str] = None, font_size: Optional[str] = None) -> str:
    """Return the `<style>` block for the given overrides."""
    default_size, scale = _style_config()
    family = clean_css_string(str(font_family)) if font_family else ""
    size = _clean_font_size(font_size)

    body_rules = []
    if family:
        body_rules.append(f"font-family: '{family}', sans-serif !important;")
    if size:
        body_rules.append(f"font-size: {size} !important;")

    base = size or default_size
    lines = ["<style>", "  body, body * {"]
    lines.extend(f"    {rule}" for rule in body_rules)
    lines.append("  }")
    lines.extend(
        f"  {tag} {{ font-size: calc({base} * {factor:g}) !important; }}"
        for tag, factor in scale.items()
    )
    lines.append("</style>")
    return "\n".join(lines) + "\n"


def apply_font_styles(html: str, font_family: Optional[str] = None, font_size: Optional[str] = None) -> str:
    """
    Inject font overrides into `html`.

    - no override supplied  -> html unchanged
    - no `</head>` in html  -> html unchanged (never raises)
    """
    if not font_family and not font_size:
        return html

    match = _HEAD_CLOSE_RE.search(html)
    if match is None:
        logger.info("font_styles_skipped_no_head")
        return html

    block = build_font_style_block(font_family, font_size)
    return html[: match.start()] + block + html[match.start():]
