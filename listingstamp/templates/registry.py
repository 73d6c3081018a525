from __future__ import annotations

from pathlib import Path
from typing import TypeVar

from listingstamp.errors import TemplateNotFound
from listingstamp.templates.base import ListingTemplate

T = TypeVar("T", bound=type[ListingTemplate])

_TEMPLATE_CLASSES: dict[str, type[ListingTemplate]] = {}
_INSTANCES: dict[tuple[str, str | None], ListingTemplate] = {}


def register_template(cls: T) -> T:
    template_id = str(cls.template_id or "").strip()
    if not template_id:
        raise ValueError(f"template class has no template_id: {cls.__name__}")
    if template_id in _TEMPLATE_CLASSES and _TEMPLATE_CLASSES[template_id] is not cls:
        raise ValueError(f"duplicate template id: {template_id}")
    _TEMPLATE_CLASSES[template_id] = cls
    return cls


def list_templates() -> list[str]:
    return sorted(_TEMPLATE_CLASSES)


def get_template(template_id: str, layout_dir: Path | None = None) -> ListingTemplate:
    key = str(template_id or "").strip()
    cls = _TEMPLATE_CLASSES.get(key)
    if cls is None:
        raise TemplateNotFound(key, known=list_templates())
    cache_key = (key, str(layout_dir) if layout_dir else None)
    instance = _INSTANCES.get(cache_key)
    if instance is None:
        instance = cls(layout_dir=layout_dir)
        _INSTANCES[cache_key] = instance
    return instance
