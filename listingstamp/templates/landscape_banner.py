from __future__ import annotations

from typing import Mapping

from listingstamp.constants import SLOT_PRIMARY_PHOTO, STAGE_STATS
from listingstamp.models import AgentInfo, ListingFields, ResolvedImage
from listingstamp.templates.base import CoverFit, DrawOp, HLine, ListingTemplate
from listingstamp.templates.registry import register_template


@register_template
class LandscapeBannerTemplate(ListingTemplate):
    template_id = "landscape_banner"
    label = "Landscape Banner"
    reference_size = (1200, 630)
    photo_count = 1

    def build_program(
        self,
        scale: float,
        fields: ListingFields,
        status: str,
        resolved: Mapping[str, ResolvedImage | None],
        agent: AgentInfo | None = None,
    ) -> list[DrawOp]:
        photo = self._section("photo")
        divider = self._section("divider")
        program: list[DrawOp] = []
        program += self._band_ops(["panel"])
        program.append(
            CoverFit(slot=SLOT_PRIMARY_PHOTO, x=photo["x"], y=photo["y"], w=photo["w"], h=photo["h"])
        )
        program += self._gradient_ops("photo_scrim")
        program += self._logo_ops(resolved)
        program.append(self._badge_op(status))
        program += self._address_op(fields, scale)
        program += self._stat_ops(fields)
        if divider:
            program.append(
                HLine(
                    stage=STAGE_STATS,
                    x=divider["x"],
                    y=divider["y"],
                    w=divider["w"],
                    color=str(divider.get("color", self._color("separator"))),
                    width=divider.get("width", 1.0),
                    opacity=divider.get("opacity", 1.0),
                )
            )
        program += self._agent_ops(agent, resolved)
        return program
