from __future__ import annotations

from typing import Iterable


class ListingStampError(Exception):
    """Base class for compositing engine errors."""


class TemplateNotFound(ListingStampError, LookupError):
    def __init__(self, template_id: str, known: Iterable[str] = ()) -> None:
        self.template_id = template_id
        self.known = tuple(known)
        message = f"unknown template: {template_id!r}"
        if self.known:
            message += f" (available: {', '.join(self.known)})"
        super().__init__(message)


class MandatoryAssetMissing(ListingStampError):
    """Raised when required photo slots stay unresolved after every load settled."""

    def __init__(self, template_id: str, slots: Iterable[str]) -> None:
        self.template_id = template_id
        self.slots = tuple(slots)
        super().__init__(f"template {template_id!r} is missing required images: {', '.join(self.slots)}")


class AssetLoadFailure(ListingStampError):
    """One reference could not be fetched or decoded. Recovered inside the resolver."""

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"{reference}: {reason}")


class EncodingFailure(ListingStampError, RuntimeError):
    pass
