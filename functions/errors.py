"""
Error kinds raised across the CV Maker service.

Every error carries a machine-readable `error_code` and the HTTP status the
API layer should answer with. The API maps these into `ErrorResponse`
bodies; nothing below the API catches them except to add context.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CVMakerError(Exception):
    """Base class for all service errors."""

    error_code: str = "INTERNAL_ERROR"
    http_status: int = 500

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CVMakerError):
    """Missing or invalid request fields (template name, record, job listing, CV text...)."""

    error_code = "VALIDATION_ERROR"
    http_status = 400


class RenderError(CVMakerError):
    """Unexpected failure while loading or substituting a template."""

    error_code = "RENDER_FAILED"
    http_status = 500


class TemplateNotFound(RenderError):
    """The named template asset does not exist."""

    error_code = "TEMPLATE_NOT_FOUND"


class CollaboratorError(CVMakerError):
    """Failure surfaced by an external collaborator (PDF renderer, Word reader/writer, LLM)."""

    error_code = "COLLABORATOR_FAILED"
    http_status = 500


__all__ = [
    "CVMakerError",
    "ValidationError",
    "RenderError",
    "TemplateNotFound",
    "CollaboratorError",
]
