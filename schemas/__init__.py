"""Schema definitions for the CV Maker service."""

from schemas.cv_schema import CVRecord, Education, Experience, UserProfile

from .api_schema import (
    ErrorResponse,
    ExportDocumentRequest,
    ExportRequest,
    GenerateRequest,
    ParseCVRequest,
    RenderResponse,
    TemplateInfo,
    UploadedDocument,
)

__all__ = [
    # Domain
    "CVRecord",
    "Experience",
    "Education",
    "UserProfile",
    # API bodies
    "RenderResponse",
    "ErrorResponse",
    "ExportRequest",
    "ExportDocumentRequest",
    "GenerateRequest",
    "ParseCVRequest",
    "UploadedDocument",
    "TemplateInfo",
]
