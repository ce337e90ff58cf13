"""
Shared configuration and model helpers for the CV Maker service.

Configuration lives in parameters/parameters.yaml (one top-level block per
concern: templates, style, generation, export, uploads, profile, security)
and is read once, then served from a module-level cache via `get_section`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

logger = structlog.get_logger().bind(module="utils.common")

ROOT = Path(__file__).resolve().parents[2]

PARAMETERS_PATH = ROOT / "parameters" / "parameters.yaml"

_PARAMETERS_CACHE: Dict[str, Any] | None = None

# ---------------------------------------------------------------------------
# Generic YAML loader
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """
    Read a YAML mapping.

    - Returns {} if the file is missing or empty.
    - Logs a warning if the root is not a mapping and returns {}.
    - Malformed YAML propagates as yaml.YAMLError.
    """
    if not path.exists():
        logger.error("yaml_file_missing", path=str(path))
        return {}

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        logger.warning(
            "yaml_root_not_mapping",
            path=str(path),
            root_type=type(data).__name__,
        )
        return {}

    return data


# ---------------------------------------------------------------------------
# Full parameters.yaml loader (cached)
# ---------------------------------------------------------------------------


def load_all_parameters() -> Dict[str, Any]:
    """
    parameters.yaml as a dict; malformed YAML is logged and read as {}.
    """
    global _PARAMETERS_CACHE
    if _PARAMETERS_CACHE is not None:
        return _PARAMETERS_CACHE

    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", path=str(PARAMETERS_PATH))
        _PARAMETERS_CACHE = {}
        return _PARAMETERS_CACHE

    try:
        cfg = load_yaml_file(PARAMETERS_PATH)
    except yaml.YAMLError as exc:
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        cfg = {}

    _PARAMETERS_CACHE = cfg
    return _PARAMETERS_CACHE


def reset_parameters_cache() -> None:
    """Forget the cached parameters (tests patch the YAML between runs)."""
    global _PARAMETERS_CACHE
    _PARAMETERS_CACHE = None


def get_section(name: str) -> Dict[str, Any]:
    """Return one top-level block of parameters.yaml, always as a dict."""
    section = load_all_parameters().get(name, {}) or {}
    if not isinstance(section, dict):
        logger.warning("parameters_section_not_dict", section=name, raw=section)
        return {}
    return section


def resolve_project_path(value: str | Path) -> Path:
    """Absolute paths are kept; relative ones are anchored at the project root."""
    p = Path(value)
    return p if p.is_absolute() else ROOT / p


# ---------------------------------------------------------------------------
# Pydantic helpers
# ---------------------------------------------------------------------------


def model_validate_compat(model_cls, data: Any):
    return model_cls.model_validate(data)


def model_dump_compat(model_obj: Any) -> Dict[str, Any]:
    """JSON-safe dict of a model (extra fields included)."""
    return model_obj.model_dump(mode="json")


# ---------------------------------------------------------------------------

__all__ = [
    "ROOT",
    "PARAMETERS_PATH",
    "load_yaml_file",
    "load_all_parameters",
    "reset_parameters_cache",
    "get_section",
    "resolve_project_path",
    "model_validate_compat",
    "model_dump_compat",
]
