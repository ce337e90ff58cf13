# functions/utils/prompts_builder.py

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, Optional

import structlog

from functions.utils.common import ROOT, load_yaml_file
from schemas.cv_schema import UserProfile

logger = structlog.get_logger().bind(module="prompts_builder")

PROMPTS_PATH = ROOT / "parameters" / "prompts.yaml"

# Shape the LLM must answer with; doubles as the contract for CVRecord.
CV_JSON_SHAPE: Dict[str, Any] = {
    "name": "Full Name",
    "title": "Professional Title",
    "email": "email@example.com",
    "phone": "+1 (555) 123-4567",
    "location": "City, State/Country",
    "summary": "Professional summary",
    "experience": [
        {
            "role": "Job Title",
            "company": "Company Name",
            "dates": "Month Year - Month Year",
            "bullets": ["Achievement-focused bullet", "Another bullet"],
        }
    ],
    "education": [
        {
            "degree": "Degree and Field",
            "school": "University / Institution",
            "year": "Year",
        }
    ],
    "skills": ["Skill 1", "Skill 2", "Skill 3"],
}


@lru_cache(maxsize=1)
def load_prompts() -> Dict[str, str]:
    """
    Load prompt templates from parameters/prompts.yaml.

    Expected keys: generate_system, generate_user, profile_context,
    no_profile_context, parse_system, parse_user.
    """
    data = load_yaml_file(PROMPTS_PATH)
    prompts = {k: v for k, v in data.items() if isinstance(v, str)}
    missing = {"generate_system", "generate_user", "parse_system", "parse_user"} - set(prompts)
    if missing:
        logger.error("prompts_missing", missing=sorted(missing), path=str(PROMPTS_PATH))
        raise KeyError(f"prompts.yaml is missing: {', '.join(sorted(missing))}")
    return prompts


def _shape() -> str:
    return json.dumps(CV_JSON_SHAPE, indent=2)


def build_profile_context(profile: Optional[UserProfile]) -> str:
    """Render the candidate block; empty profile (no name) → no context."""
    prompts = load_prompts()
    if profile is None or not profile.name:
        return prompts.get("no_profile_context", "")

    links = "\n".join(
        line
        for line in (
            f"LinkedIn: {profile.linkedin}" if profile.linkedin else "",
            f"Portfolio: {profile.portfolio}" if profile.portfolio else "",
        )
        if line
    )
    if profile.education:
        education = "\n".join(
            f"- {edu.degree} from {edu.school_name}, {edu.year}" for edu in profile.education
        )
    else:
        education = "Include relevant education for the role"
    if profile.skills:
        skills = "Skills to include:\n" + ", ".join(profile.skills)
    else:
        skills = "Include relevant skills for the role"

    return prompts.get("profile_context", "").format(
        name=profile.name,
        email=profile.email or "email@example.com",
        phone=profile.phone or "+1 (555) 123-4567",
        location=profile.location or "City, State",
        title=profile.title or "Professional Title",
        links=links,
        education=education,
        skills=skills,
    )


def build_generation_prompt(job_listing: str, profile: Optional[UserProfile] = None) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for CV generation."""
    prompts = load_prompts()
    user_prompt = prompts["generate_user"].format(
        job_listing=job_listing.strip(),
        user_context=build_profile_context(profile),
        cv_json_shape=_shape(),
    )
    return prompts["generate_system"].strip(), user_prompt


def build_parse_prompt(cv_text: str) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for CV text parsing."""
    prompts = load_prompts()
    user_prompt = prompts["parse_user"].format(cv_text=cv_text.strip(), cv_json_shape=_shape())
    return prompts["parse_system"].strip(), user_prompt


__all__ = [
    "CV_JSON_SHAPE",
    "load_prompts",
    "build_profile_context",
    "build_generation_prompt",
    "build_parse_prompt",
]
