# functions/render_service.py

"""
Render Service: (template name, CV data, style options) -> finished HTML.

Two entry points:

- `render_cv` raises the service errors (ValidationError / RenderError) and
  is what the CLI and other Python callers use.
- `handle_render_request` is the transport-agnostic request boundary used by
  the HTTP layer. It accepts the client payload

      {"templateName": str, "data": {...}, "fontFamily"?: str, "fontSize"?: str}

  and answers `({"html": ...}, 200)` or `({"error": ..., "error_code": ...}, status)`
  with 400 for client errors and 500 for rendering failures.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from functions.errors import CVMakerError, RenderError, ValidationError
from functions.style_injector import apply_font_styles
from functions.template_engine import render_template
from functions.utils.common import model_validate_compat
from schemas.cv_schema import CVRecord

logger = structlog.get_logger().bind(module="render_service")


def coerce_record(data: Any) -> CVRecord:
    """Validate client data into a CVRecord, mapping schema errors to ValidationError."""
    if isinstance(data, CVRecord):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError("CV data must be a JSON object")
    try:
        return model_validate_compat(CVRecord, dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid CV data",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


def render_cv(
    template_name: str,
    data: Any,
    *,
    font_family: Optional[str] = None,
    font_size: Optional[str] = None,
) -> str:
    """Render `data` into the named template and apply font overrides."""
    if not template_name or data is None:
        raise ValidationError("Template name and data are required")

    record = coerce_record(data)
    html = render_template(template_name, record)

    if font_family or font_size:
        html = apply_font_styles(html, font_family, font_size)
    return html


def error_body(exc: CVMakerError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": exc.message, "error_code": exc.error_code}
    if exc.details:
        body["details"] = exc.details
    return body


def handle_render_request(payload: Mapping[str, Any] | None) -> Tuple[Dict[str, Any], int]:
    """Serve one render request; never raises."""
    payload = payload or {}
    template_name = payload.get("templateName")
    data = payload.get("data")

    try:
        html = render_cv(
            template_name,
            data,
            font_family=payload.get("fontFamily"),
            font_size=payload.get("fontSize"),
        )
    except ValidationError as exc:
        logger.warning("render_request_invalid", error=exc.message)
        return error_body(exc), exc.http_status
    except RenderError as exc:
        logger.error("render_request_failed", template_name=template_name, error=exc.message)
        return error_body(exc), exc.http_status
    except Exception as exc:
        logger.exception("render_request_internal_error", template_name=template_name)
        return {"error": str(exc) or "Failed to render template", "error_code": RenderError.error_code}, 500

    logger.info("render_request_success", template_name=template_name, html_chars=len(html))
    return {"html": html}, 200


__all__ = [
    "coerce_record",
    "render_cv",
    "error_body",
    "handle_render_request",
]
