# functions/profile_store.py

"""
User Profile persistence.

The profile (name, contact details, education, skills) seeds AI generation.
It is an explicit object with injected load / save callables instead of
ambient global state, so the HTTP layer, the CLI and tests can each wire
their own backing store.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from functions.errors import ValidationError
from functions.utils.common import get_section, model_dump_compat, model_validate_compat, resolve_project_path
from schemas.cv_schema import UserProfile

logger = structlog.get_logger().bind(module="profile_store")

LoadFn = Callable[[], Optional[Dict[str, Any]]]
SaveFn = Callable[[Optional[Dict[str, Any]]], None]

DEFAULT_PROFILE_PATH = "local_data/user_profile.json"


class ProfileStore:
    """Get / save / clear a single UserProfile through injected callables.

    `save(None)` on the backing callable means "delete".
    """

    def __init__(self, load: LoadFn, save: SaveFn) -> None:
        self._load = load
        self._save = save

    def get(self) -> Optional[UserProfile]:
        raw = self._load()
        if not raw:
            return None
        try:
            return model_validate_compat(UserProfile, raw)
        except PydanticValidationError as exc:
            logger.warning("stored_profile_invalid", error=str(exc))
            return None

    def save(self, profile: UserProfile | Dict[str, Any]) -> UserProfile:
        if not isinstance(profile, UserProfile):
            try:
                profile = model_validate_compat(UserProfile, profile)
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Invalid profile",
                    details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
                ) from exc
        self._save(model_dump_compat(profile))
        logger.info("profile_saved", has_name=bool(profile.name), skills_count=len(profile.skills))
        return profile

    def clear(self) -> None:
        self._save(None)
        logger.info("profile_cleared")


def in_memory_profile_store(initial: Optional[Dict[str, Any]] = None) -> ProfileStore:
    state: Dict[str, Any] = {"profile": initial}

    def load() -> Optional[Dict[str, Any]]:
        return state["profile"]

    def save(data: Optional[Dict[str, Any]]) -> None:
        state["profile"] = data

    return ProfileStore(load, save)


def json_file_profile_store(path: Path) -> ProfileStore:
    """Profile persisted as one JSON file; clearing deletes the file."""

    def load() -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("profile_file_unreadable", path=str(path), error=str(exc))
            return None
        return data if isinstance(data, dict) else None

    def save(data: Optional[Dict[str, Any]]) -> None:
        if data is None:
            path.unlink(missing_ok=True)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(path)

    return ProfileStore(load, save)


def default_profile_path() -> Path:
    """CV_MAKER_PROFILE_PATH, else parameters.yaml profile.path."""
    configured = os.environ.get("CV_MAKER_PROFILE_PATH") or get_section("profile").get("path")
    return resolve_project_path(configured or DEFAULT_PROFILE_PATH)


__all__ = [
    "ProfileStore",
    "in_memory_profile_store",
    "json_file_profile_store",
    "default_profile_path",
]
