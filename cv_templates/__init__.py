"""CV template registry and template asset loading."""

from cv_templates.cv_templates import (
    DEFAULT_TEMPLATE,
    TEMPLATES,
    default_templates_dir,
    list_templates,
    load_template,
    render_document_page,
)
from cv_templates.sample_data import SAMPLE_CV

__all__ = [
    "DEFAULT_TEMPLATE",
    "TEMPLATES",
    "SAMPLE_CV",
    "default_templates_dir",
    "list_templates",
    "load_template",
    "render_document_page",
]
