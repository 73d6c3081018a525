from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Mapping, Sequence

from listingstamp.assets import AssetResolver, same_origin_proxy
from listingstamp.compositor import Compositor, missing_mandatory_slots
from listingstamp.constants import (
    LOGO_SLOTS,
    SLOT_AGENT_HEADSHOT,
    SLOT_PRIMARY_PHOTO,
    SLOT_SECONDARY_PHOTO,
)
from listingstamp.encoder import encode_image
from listingstamp.errors import MandatoryAssetMissing
from listingstamp.log import get_logger
from listingstamp.models import BrandAsset, RenderRequest, RenderResult, ResolvedImage
from listingstamp.templates import get_template
from listingstamp.templates.base import ListingTemplate

_log = get_logger("pipeline")


def bind_images(
    *,
    photos: Sequence[Any] = (),
    headshot: Any = None,
    logos: Mapping[str, BrandAsset] | None = None,
    default_logos: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the slot -> reference mapping for a :class:`RenderRequest`."""
    bindings: dict[str, Any] = {}
    photo_slots = (SLOT_PRIMARY_PHOTO, SLOT_SECONDARY_PHOTO)
    for slot, reference in zip(photo_slots, [p for p in photos if p]):
        bindings[slot] = reference
    if headshot:
        bindings[SLOT_AGENT_HEADSHOT] = headshot
    defaults = default_logos or {}
    chosen = logos or {}
    for slot in LOGO_SLOTS:
        asset = chosen.get(slot, BrandAsset())
        reference = asset.reference(defaults.get(slot))
        if reference:
            bindings[slot] = reference
    return bindings


class RenderPipeline:
    """Template lookup, concurrent asset resolution, compositing and encoding."""

    def __init__(
        self,
        resolver: AssetResolver | None = None,
        compositor: Compositor | None = None,
        *,
        output_format: str = "png",
        quality: int = 92,
        layout_dir: Path | None = None,
    ) -> None:
        self.resolver = resolver or AssetResolver()
        self.compositor = compositor or Compositor()
        self.output_format = output_format
        self.quality = quality
        self.layout_dir = layout_dir

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], **resolver_kwargs: Any) -> "RenderPipeline":
        proxy_base = cfg.get("proxy_base")
        resolver = AssetResolver(
            proxy=same_origin_proxy(str(proxy_base)) if proxy_base else None,
            timeout_s=float(cfg.get("asset_timeout_s") or 10.0),
            **resolver_kwargs,
        )
        compositor = Compositor(
            font_path=cfg.get("font_path") or None,
            bold_font_path=cfg.get("bold_font_path") or None,
        )
        layout_dir = cfg.get("layout_dir")
        return cls(
            resolver,
            compositor,
            output_format=str(cfg.get("output_format") or "png"),
            quality=int(cfg.get("quality") or 92),
            layout_dir=Path(layout_dir) if layout_dir else None,
        )

    def template_for(self, request: RenderRequest) -> ListingTemplate:
        return get_template(request.template_id, self.layout_dir)

    def resolve_assets(
        self,
        template: ListingTemplate,
        request: RenderRequest,
    ) -> dict[str, ResolvedImage | None]:
        bound = request.bound_slots()
        ignored = sorted(slot for slot in bound if slot not in template.declared_slots)
        if ignored:
            _log.debug("template=%s ignores bound slots: %s", template.template_id, ", ".join(ignored))
        wanted = {slot: ref for slot, ref in bound.items() if slot in template.declared_slots}
        resolved = self.resolver.resolve_all(wanted)
        for slot in template.declared_slots:
            resolved.setdefault(slot, None)
        return resolved

    def render(self, request: RenderRequest, *, strict: bool = False) -> RenderResult | None:
        """Run the full pipeline once at ``request.resolution``.

        Returns ``None`` when a mandatory photo slot did not resolve, or raises
        :class:`MandatoryAssetMissing` instead when ``strict`` is set.
        """
        started = time.perf_counter()
        template = self.template_for(request)
        resolved = self.resolve_assets(template, request)
        missing = missing_mandatory_slots(template, resolved)
        if missing:
            error = MandatoryAssetMissing(template.template_id, missing)
            if strict:
                raise error
            _log.info("no render produced: %s", error)
            return None

        composition = self.compositor.compose(template, request, resolved)
        data = encode_image(composition.image, self.output_format, self.quality)
        elapsed = time.perf_counter() - started
        _log.info(
            "rendered template=%s size=%sx%s gen=%s (%.2fs)",
            template.template_id,
            composition.image.width,
            composition.image.height,
            request.generation,
            elapsed,
        )
        return RenderResult(
            data=data,
            width=composition.image.width,
            height=composition.image.height,
            format=self.output_format,
            template_id=template.template_id,
            generation=request.generation,
            skipped_slots=composition.skipped_slots,
            elapsed=elapsed,
        )

    def export(self, request: RenderRequest, *, strict: bool = False) -> RenderResult | None:
        """Authoritative full-resolution render; not debounced or cancellable."""
        return self.render(request, strict=strict)

    def preview(self, request: RenderRequest, preview_scale: float = 0.5) -> RenderResult | None:
        return self.render(request.with_resolution(preview_resolution(request.resolution, preview_scale)))


def preview_resolution(resolution: int, preview_scale: float) -> int:
    return max(1, int(round(int(resolution) * float(preview_scale))))
