"""
Utility helpers: configuration, escaping / security, LLM client.
"""

from .security_functions import detect_injection, escape_html, sanitize_template_name

__all__ = [
    "detect_injection",
    "escape_html",
    "sanitize_template_name",
]
