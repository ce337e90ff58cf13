"""Request / response bodies for the HTTP API.

Request keys follow the camelCase names the browser client sends
(`templateName`, `fontFamily`, `jobListing`, ...). Models accept either the
alias or the Python field name.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemas.cv_schema import UserProfile


class RenderResponse(BaseModel):
    html: str


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint on failure."""

    error: str = Field(..., description="Human-readable error message")
    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["VALIDATION_ERROR", "TEMPLATE_NOT_FOUND", "RENDER_FAILED", "COLLABORATOR_FAILED"],
    )
    details: Dict[str, Any] | None = Field(None, description="Additional error details")

    model_config = {"extra": "forbid"}


class ExportRequest(BaseModel):
    html: str = ""


class ExportDocumentRequest(BaseModel):
    content: str = ""
    title: str = "document"
    format: str = ""


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_listing: str = Field("", alias="jobListing")
    user_profile: UserProfile | None = Field(None, alias="userProfile")


class ParseCVRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cv_text: str = Field("", alias="cvText")


class UploadedDocument(BaseModel):
    """Result of reading an uploaded PDF / Word / text file."""

    content: str = Field("", description="HTML rendition for the editor")
    text: str = Field("", description="Plain text rendition")


class TemplateInfo(BaseModel):
    """Registry entry describing one CV template."""

    name: str = Field(..., description="Template identifier, also the file stem")
    label: str = Field(..., description="Human-readable template name")
    description: str = ""
    style: Literal["classic", "modern", "two-column", "creative"] = "classic"
    sections: List[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    status: str
