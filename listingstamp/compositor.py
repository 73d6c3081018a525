from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from PIL import Image

from listingstamp.errors import MandatoryAssetMissing
from listingstamp.log import get_logger
from listingstamp.models import RenderRequest, ResolvedImage
from listingstamp.render.primitives import Painter
from listingstamp.templates.base import DrawOp, ListingTemplate

_log = get_logger("compositor")


@dataclass(slots=True)
class Composition:
    image: Image.Image
    program: list[DrawOp] = field(default_factory=list)
    skipped_slots: tuple[str, ...] = ()


def missing_mandatory_slots(
    template: ListingTemplate,
    resolved: Mapping[str, ResolvedImage | None],
) -> list[str]:
    return sorted(slot for slot in template.mandatory_slots if resolved.get(slot) is None)


def check_mandatory(template: ListingTemplate, resolved: Mapping[str, ResolvedImage | None]) -> None:
    missing = missing_mandatory_slots(template, resolved)
    if missing:
        raise MandatoryAssetMissing(template.template_id, missing)


def order_program(template: ListingTemplate, program: list[DrawOp]) -> list[DrawOp]:
    """Validate slot usage and return the ops in z-order.

    The sort is stable, so ops sharing a stage keep the template's order.
    """
    declared = template.declared_slots
    for op in program:
        if op.slot is not None and op.slot not in declared:
            raise ValueError(
                f"template {template.template_id!r} reads undeclared slot {op.slot!r} in {type(op).__name__}"
            )
    return sorted(program, key=lambda op: op.stage)


class Compositor:
    """Executes a template's draw program on a fresh surface, one pass per call."""

    def __init__(
        self,
        *,
        font_path: Path | str | None = None,
        bold_font_path: Path | str | None = None,
    ) -> None:
        self.font_path = font_path
        self.bold_font_path = bold_font_path

    def compose(
        self,
        template: ListingTemplate,
        request: RenderRequest,
        resolved: Mapping[str, ResolvedImage | None],
    ) -> Composition:
        check_mandatory(template, resolved)
        visible = {slot: image for slot, image in resolved.items() if slot in template.declared_slots}
        scale = template.scale_for(request.resolution)
        size = template.output_size(request.resolution)
        program = order_program(
            template,
            template.build_program(scale, request.fields, request.effective_status, visible, request.agent),
        )

        background = str(template.layout["palette"]["background"])
        canvas = Image.new("RGBA", size, color=background)
        painter = Painter(canvas, scale, font_path=self.font_path, bold_font_path=self.bold_font_path)

        for op in program:
            resolved_image = visible.get(op.slot) if op.slot else None
            if op.requires_image and resolved_image is None:
                continue
            op.execute(painter, resolved_image.image if resolved_image else None)

        skipped = sorted(slot for slot in template.optional_slots if visible.get(slot) is None)
        if skipped:
            _log.debug("template=%s skipped optional slots: %s", template.template_id, ", ".join(skipped))
        return Composition(image=painter.canvas.convert("RGB"), program=program, skipped_slots=tuple(skipped))
