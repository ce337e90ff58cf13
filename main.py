# main.py
"""
Command-line access point for CV rendering (no FastAPI needed).

    python main.py <template> <data.json> [--font-family F] [--font-size S]
                   [--out FILE] [--pdf FILE]

Renders the CV Record in data.json into the named template, applies the
optional font overrides and writes the HTML to stdout or --out. With --pdf
the same HTML is also printed to PDF.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from functions.document_export import render_pdf
from functions.errors import CVMakerError
from functions.render_service import render_cv

logger = structlog.get_logger().bind(module="main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a CV Record into an HTML template.")
    parser.add_argument("template", help="Template name, e.g. simple, modern, two-column, creative")
    parser.add_argument("data", type=Path, help="Path to a JSON file holding the CV Record")
    parser.add_argument("--font-family", default=None, help="CSS font family applied to the whole CV")
    parser.add_argument("--font-size", default=None, help="Base font size, e.g. 12px")
    parser.add_argument("--out", type=Path, default=None, help="Write HTML here instead of stdout")
    parser.add_argument("--pdf", type=Path, default=None, help="Also write a PDF to this path")
    return parser


def _cli(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.data.is_file():
        print(f"[ERROR] Input file not found: {args.data}", file=sys.stderr)
        return 1

    try:
        data = json.loads(args.data.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"[ERROR] Failed to read CV data: {e}", file=sys.stderr)
        return 1

    try:
        html = render_cv(
            args.template,
            data,
            font_family=args.font_family,
            font_size=args.font_size,
        )
        if args.pdf is not None:
            args.pdf.write_bytes(render_pdf(html))
            logger.info("cli_pdf_written", path=str(args.pdf))
    except CVMakerError as e:
        print(f"[ERROR] {e.error_code}: {e.message}", file=sys.stderr)
        return 1

    if args.out is not None:
        args.out.write_text(html, encoding="utf-8")
        logger.info("cli_html_written", path=str(args.out), html_chars=len(html))
    else:
        print(html)
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
