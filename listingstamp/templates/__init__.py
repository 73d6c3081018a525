"""Built-in listing graphic templates.

Importing this package registers every built-in template.
"""
from listingstamp.templates import (  # noqa: F401
    classic_square,
    duo_split,
    landscape_banner,
    navy_header,
    story_overlay,
)
from listingstamp.templates.base import ListingTemplate
from listingstamp.templates.registry import get_template, list_templates, register_template

__all__ = ["ListingTemplate", "get_template", "list_templates", "register_template"]
