"""Template store: CV template registry, template asset loading and the
Jinja2 wrapper page used for editor document exports.

CV templates are plain HTML files under `cv_templates/html/` containing
`{{...}}` placeholder tokens (see `functions.template_engine`). The registry
`cv_templates/templates.yaml` describes them for listing in the UI.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from functions.errors import RenderError, TemplateNotFound
from functions.utils.common import get_section, load_yaml_file, resolve_project_path
from functions.utils.security_functions import sanitize_template_name
from schemas.api_schema import TemplateInfo

logger = structlog.get_logger().bind(module="cv_templates")

_HERE = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# Registry model
# ---------------------------------------------------------------------------


@dataclass
class TemplateConfig:
    """One registry entry from templates.yaml."""

    name: str
    label: str
    description: str
    style: Literal["classic", "modern", "two-column", "creative"]
    sections: list[str]


def _registry_path() -> Path:
    configured = get_section("templates").get("registry")
    return resolve_project_path(configured) if configured else _HERE / "templates.yaml"


def default_templates_dir() -> Path:
    configured = get_section("templates").get("html_dir")
    return resolve_project_path(configured) if configured else _HERE / "html"


def _load_templates_from_yaml() -> dict[str, TemplateConfig]:
    """Load the template registry."""
    yaml_path = _registry_path()
    if not yaml_path.exists():
        raise FileNotFoundError(f"Template registry not found: {yaml_path}")

    raw = load_yaml_file(yaml_path)
    templates: dict[str, TemplateConfig] = {}

    for name, cfg in raw.items():
        if not isinstance(cfg, dict):
            raise ValueError(f"Template '{name}' must be a mapping, got {type(cfg)}")

        templates[name] = TemplateConfig(
            name=name,
            label=cfg.get("label", name),
            description=cfg.get("description", ""),
            style=cfg.get("style", "classic"),
            sections=list(cfg.get("sections", [])),
        )

    return templates


TEMPLATES: dict[str, TemplateConfig] = _load_templates_from_yaml()

DEFAULT_TEMPLATE = "simple"


def list_templates() -> list[TemplateInfo]:
    """Registry entries in declaration order, as API models."""
    return [
        TemplateInfo(
            name=t.name,
            label=t.label,
            description=t.description,
            style=t.style,
            sections=t.sections,
        )
        for t in TEMPLATES.values()
    ]


# ---------------------------------------------------------------------------
# Template asset loading
# ---------------------------------------------------------------------------


def load_template(template_name: str, *, templates_dir: Path | None = None) -> str:
    """
    Read `<templates_dir>/<template_name>.html`.

    Raises:
        ValidationError: name contains anything but letters, digits, '-', '_'
        TemplateNotFound: no such file
        RenderError: the file exists but cannot be read / decoded
    """
    name = sanitize_template_name(template_name)
    base = (templates_dir or default_templates_dir()).resolve()
    path = (base / f"{name}.html").resolve()

    if path.parent != base or not path.is_file():
        logger.warning("template_not_found", template_name=name, path=str(path))
        raise TemplateNotFound(
            f"Template not found: {name}",
            details={"available": sorted(TEMPLATES)},
        )

    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("template_read_failed", template_name=name, error=str(exc))
        raise RenderError(f"Failed to read template {name}: {exc}") from exc


# ---------------------------------------------------------------------------
# Jinja2 environment (wrapper pages for editor exports)
# ---------------------------------------------------------------------------

_JINJA_DIR = _HERE / "jinja"

_TEMPLATE_ENV = Environment(
    loader=FileSystemLoader(str(_JINJA_DIR)),
    autoescape=select_autoescape(["html", "xml", "jinja2"]),
)


def render_document_page(content_html: str, title: str = "document") -> str:
    """
    Wrap an editor HTML fragment into a complete printable page.

    The title is escaped; the content is editor-produced HTML and is
    inserted as markup.
    """
    template = _TEMPLATE_ENV.get_template("document_page.html.jinja2")
    return template.render(title=title or "document", content=Markup(content_html or ""))
