from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping

from PIL import Image

from listingstamp.constants import STATUS_JUST_LISTED

_FIELD_NAMES = ("address", "price", "beds", "baths", "sqft", "status")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True, slots=True)
class ListingFields:
    address: str = ""
    price: Any = None
    beds: Any = None
    baths: Any = None
    sqft: Any = None
    status: str = STATUS_JUST_LISTED

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> "ListingFields":
        """Return a copy where each non-blank override replaces the listing value."""
        if not overrides:
            return self
        changes = {
            key: value
            for key, value in overrides.items()
            if key in _FIELD_NAMES and not _is_blank(value)
        }
        if not changes:
            return self
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in _FIELD_NAMES}


@dataclass(frozen=True, slots=True)
class AgentInfo:
    name: str | None = None
    phone: str | None = None

    @property
    def is_empty(self) -> bool:
        return _is_blank(self.name) and _is_blank(self.phone)


@dataclass(frozen=True, slots=True)
class BrandAsset:
    """A brand logo choice: a custom reference or the host-provided default."""

    custom: Any = None
    use_default: bool = True

    def reference(self, default: Any) -> Any:
        if self.use_default or _is_blank(self.custom):
            return default
        return self.custom


@dataclass(slots=True)
class ResolvedImage:
    slot: str
    image: Image.Image
    reference: str = ""

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass(frozen=True, slots=True)
class RenderRequest:
    template_id: str
    fields: ListingFields = field(default_factory=ListingFields)
    images: Mapping[str, Any] = field(default_factory=dict)
    agent: AgentInfo = field(default_factory=AgentInfo)
    resolution: int = 1080
    status: str | None = None
    generation: int = 0

    @property
    def effective_status(self) -> str:
        return self.status or self.fields.status

    def bound_slots(self) -> dict[str, Any]:
        return {slot: ref for slot, ref in self.images.items() if not _is_blank(ref)}

    def with_resolution(self, resolution: int) -> "RenderRequest":
        return dataclasses.replace(self, resolution=max(1, int(resolution)))

    def with_generation(self, generation: int) -> "RenderRequest":
        return dataclasses.replace(self, generation=int(generation))


@dataclass(slots=True)
class RenderResult:
    data: bytes
    width: int
    height: int
    format: str
    template_id: str
    generation: int = 0
    skipped_slots: tuple[str, ...] = ()
    elapsed: float = 0.0
