from __future__ import annotations

from typing import Mapping

from listingstamp.constants import LOGO_SLOTS, SLOT_PRIMARY_PHOTO
from listingstamp.models import AgentInfo, ListingFields, ResolvedImage
from listingstamp.templates.base import CoverFit, DrawOp, ListingTemplate
from listingstamp.templates.registry import register_template


@register_template
class StoryOverlayTemplate(ListingTemplate):
    """Full-bleed 9:16 story with everything stacked over the lower scrim."""

    template_id = "story_overlay"
    label = "Story Overlay"
    reference_size = (1080, 1920)
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
        program: list[DrawOp] = [
            CoverFit(slot=SLOT_PRIMARY_PHOTO, x=photo["x"], y=photo["y"], w=photo["w"], h=photo["h"]),
        ]
        if any(resolved.get(slot) is not None for slot in LOGO_SLOTS):
            program += self._gradient_ops("top_scrim")
        program += self._gradient_ops("bottom_scrim")
        program += self._logo_ops(resolved)
        program.append(self._badge_op(status))
        program += self._address_op(fields, scale)
        program += self._stat_ops(fields)
        program += self._agent_ops(agent, resolved)
        return program
