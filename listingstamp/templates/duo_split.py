from __future__ import annotations

from typing import Mapping

from listingstamp.constants import (
    SLOT_AGENT_HEADSHOT,
    SLOT_PRIMARY_LOGO,
    SLOT_PRIMARY_PHOTO,
    SLOT_SECONDARY_LOGO,
    SLOT_SECONDARY_PHOTO,
    STAGE_PHOTOS,
)
from listingstamp.models import AgentInfo, ListingFields, ResolvedImage
from listingstamp.templates.base import CoverFit, DrawOp, FillRect, ListingTemplate
from listingstamp.templates.registry import register_template


@register_template
class DuoSplitTemplate(ListingTemplate):
    """Two stacked photos; neither may be missing."""

    template_id = "duo_split"
    label = "Duo Split"
    reference_size = (1080, 1350)
    photo_count = 2
    mandatory_slots = frozenset({SLOT_PRIMARY_PHOTO, SLOT_SECONDARY_PHOTO})
    optional_slots = frozenset({SLOT_AGENT_HEADSHOT, SLOT_PRIMARY_LOGO, SLOT_SECONDARY_LOGO})

    def build_program(
        self,
        scale: float,
        fields: ListingFields,
        status: str,
        resolved: Mapping[str, ResolvedImage | None],
        agent: AgentInfo | None = None,
    ) -> list[DrawOp]:
        first = self._section("photo")
        second = self._section("secondary_photo")
        gap = self._section("photo_gap")
        program: list[DrawOp] = []
        program += self._band_ops(["header", "footer"])
        program.append(
            CoverFit(slot=SLOT_PRIMARY_PHOTO, x=first["x"], y=first["y"], w=first["w"], h=first["h"])
        )
        program.append(
            CoverFit(slot=SLOT_SECONDARY_PHOTO, x=second["x"], y=second["y"], w=second["w"], h=second["h"])
        )
        if gap:
            program.append(
                FillRect(
                    stage=STAGE_PHOTOS,
                    x=gap.get("x", 0.0),
                    y=gap["y"],
                    w=gap.get("w", float(self.reference_size[0])),
                    h=gap["h"],
                    color=str(gap.get("color", "#ffffff")),
                )
            )
        program += self._gradient_ops("photo_scrim")
        program += self._logo_ops(resolved)
        program.append(self._badge_op(status))
        program += self._address_op(fields, scale)
        program += self._stat_ops(fields)
        program += self._agent_ops(agent, resolved)
        return program
