# functions/cv_generation.py

"""
CV assistant: LLM-backed generation and parsing of CV Records.

- `CVAssistant.generate_cv(job_listing, user_profile)` writes a CV tailored to
  a job listing, seeded with the user's own details when a profile is given.
- `CVAssistant.parse_cv(cv_text)` turns pasted CV text into a CV Record.

The LLM is an external collaborator injected as a callable
(`functions.utils.llm_client.call_llm` or the offline stub). Its answer must
be a JSON object; malformed JSON, a non-object, or missing required fields
raise CollaboratorError. No retries happen here.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from functions.errors import CollaboratorError, ValidationError
from functions.utils.common import get_section, model_validate_compat
from functions.utils.llm_client import LLMClient, select_llm_client
from functions.utils.prompts_builder import build_generation_prompt, build_parse_prompt
from functions.utils.security_functions import screen_prompt_input
from schemas.cv_schema import CVRecord, UserProfile

logger = structlog.get_logger().bind(module="cv_generation")

GENERATE_REQUIRED_FIELDS = ("name", "title", "experience", "skills")
PARSE_REQUIRED_FIELDS = ("name", "title")


def _strip_markdown_fence(text: str) -> str:
    """Remove ``` / ```json fences if present, otherwise return text unchanged."""
    stripped = text.strip()
    if stripped.startswith("```"):
        lines = stripped.splitlines()
        # drop first line (``` or ```json)
        if lines:
            lines = lines[1:]
        # drop last line if it's a closing fence
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        stripped = "\n".join(lines).strip()
    return stripped


def parse_llm_cv_json(raw: str, required_fields: Iterable[str]) -> CVRecord:
    """Decode an LLM answer into a CVRecord, enforcing required fields."""
    cleaned = _strip_markdown_fence(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("llm_json_decode_failed", error=str(exc), preview=cleaned[:200])
        raise CollaboratorError(
            "The language model returned malformed JSON",
            details={"error": str(exc)},
        ) from exc

    if not isinstance(data, dict):
        raise CollaboratorError("The language model did not return a JSON object")

    # an empty list counts as present, an empty string does not
    missing = [field for field in required_fields if data.get(field) in (None, "")]
    if missing:
        logger.warning("llm_cv_missing_fields", missing=missing)
        raise CollaboratorError(
            "Invalid CV structure generated: missing " + ", ".join(missing),
            details={"missing": missing},
        )

    try:
        return model_validate_compat(CVRecord, data)
    except PydanticValidationError as exc:
        raise CollaboratorError(
            "The language model returned a CV with invalid fields",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


class CVAssistant:
    """Generates and parses CV Records through an injected LLM client."""

    def __init__(self, llm_client: Optional[LLMClient] = None, generation_params: Optional[Dict[str, Any]] = None):
        self.llm_client = llm_client or select_llm_client()
        self.params = generation_params if generation_params is not None else get_section("generation")

    def _call(self, task: str, system_prompt: str, user_prompt: str) -> str:
        task_cfg = self.params.get(task, {}) or {}
        return self.llm_client(
            user_prompt,
            system_prompt=system_prompt,
            model=self.params.get("model_name"),
            temperature=task_cfg.get("temperature"),
            max_output_tokens=task_cfg.get("max_tokens"),
        )

    def generate_cv(self, job_listing: str, user_profile: Optional[UserProfile] = None) -> CVRecord:
        if not job_listing or not job_listing.strip():
            raise ValidationError("Job listing is required")

        listing = screen_prompt_input(job_listing, field="job listing")
        system_prompt, user_prompt = build_generation_prompt(listing, user_profile)

        logger.info(
            "cv_generation_start",
            listing_chars=len(listing),
            with_profile=bool(user_profile and user_profile.name),
        )
        raw = self._call("generate", system_prompt, user_prompt)
        record = parse_llm_cv_json(raw, GENERATE_REQUIRED_FIELDS)
        logger.info(
            "cv_generation_done",
            experience_count=len(record.experience),
            skills_count=len(record.skills),
        )
        return record

    def parse_cv(self, cv_text: str) -> CVRecord:
        if not cv_text or not cv_text.strip():
            raise ValidationError("CV text is required")

        text = screen_prompt_input(cv_text, field="CV text")
        system_prompt, user_prompt = build_parse_prompt(text)

        logger.info("cv_parse_start", text_chars=len(text))
        raw = self._call("parse", system_prompt, user_prompt)
        record = parse_llm_cv_json(raw, PARSE_REQUIRED_FIELDS)
        logger.info("cv_parse_done", experience_count=len(record.experience))
        return record


__all__ = [
    "GENERATE_REQUIRED_FIELDS",
    "PARSE_REQUIRED_FIELDS",
    "parse_llm_cv_json",
    "CVAssistant",
]
