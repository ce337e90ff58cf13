"""CV Record and User Profile models.

The CV Record is the only domain entity the renderer consumes. It is built
fresh per request (form state, pasted-text parse, or LLM generation) and is
never persisted. Models are deliberately lenient:

- scalar fields default to "" and accept null / numbers (coerced to str)
- array fields default to [] and accept null
- unknown keys are kept so templates can bind extra array sections
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_text(v: Any) -> str:
    """None → "", bools → "true"/"false", numbers → str, strings kept verbatim."""
    if v is None:
        return ""
    if isinstance(v, str):
        return v
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    raise ValueError(f"expected text, got {type(v).__name__}")


def _coerce_text_list(v: Any) -> List[str]:
    if v is None:
        return []
    if not isinstance(v, (list, tuple)):
        raise ValueError(f"expected a list of text, got {type(v).__name__}")
    return [_coerce_text(item) for item in v]


class Experience(BaseModel):
    """One job entry."""

    model_config = ConfigDict(extra="allow")

    role: str = Field("", description="Job title")
    company: str = Field("", description="Employer name")
    dates: str = Field("", description="Free-form date range, e.g. 'Jan 2020 - Present'")
    bullets: List[str] = Field(default_factory=list, description="Achievement bullets")

    @field_validator("role", "company", "dates", mode="before")
    @classmethod
    def coerce_scalars(cls, v: Any) -> str:
        return _coerce_text(v)

    @field_validator("bullets", mode="before")
    @classmethod
    def coerce_bullets(cls, v: Any) -> List[str]:
        return _coerce_text_list(v)


class Education(BaseModel):
    """One education entry. `institution` is accepted as an alias of `school`."""

    model_config = ConfigDict(extra="allow")

    degree: str = ""
    school: str = ""
    institution: str = ""
    year: str = ""

    @field_validator("degree", "school", "institution", "year", mode="before")
    @classmethod
    def coerce_scalars(cls, v: Any) -> str:
        return _coerce_text(v)

    @property
    def school_name(self) -> str:
        return self.school or self.institution


class CVRecord(BaseModel):
    """Structured résumé data handed to the template engine."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    title: str = ""
    summary: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)

    @field_validator("name", "title", "summary", "email", "phone", "location", mode="before")
    @classmethod
    def coerce_scalars(cls, v: Any) -> str:
        return _coerce_text(v)

    @field_validator("experience", "education", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> List[str]:
        return _coerce_text_list(v)


class UserProfile(BaseModel):
    """Long-lived personal facts used to seed AI generation.

    Owned by the Profile Store (explicit save / clear), never by the renderer.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    title: str = ""
    linkedin: str = ""
    portfolio: str = ""
    education: List[Education] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)

    @field_validator(
        "name", "email", "phone", "location", "title", "linkedin", "portfolio", mode="before"
    )
    @classmethod
    def coerce_scalars(cls, v: Any) -> str:
        return _coerce_text(v)

    @field_validator("education", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> List[str]:
        return _coerce_text_list(v)
