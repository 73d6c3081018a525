"""Draw-op records and the template base class.

A template never touches a drawing surface. ``build_program`` returns a list
of op records in reference-canvas units; the compositor executes them against
a :class:`~listingstamp.render.primitives.Painter`.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from PIL import Image

from listingstamp.constants import (
    LOGO_SLOTS,
    SLOT_AGENT_HEADSHOT,
    SLOT_PRIMARY_LOGO,
    SLOT_PRIMARY_PHOTO,
    SLOT_SECONDARY_LOGO,
    STAGE_ADDRESS,
    STAGE_AGENT,
    STAGE_BACKGROUND,
    STAGE_BADGE,
    STAGE_LOGOS,
    STAGE_PHOTOS,
    STAGE_SCRIMS,
    STAGE_STATS,
)
from listingstamp.formatting import (
    agent_name_line,
    clean_text,
    format_number,
    format_price,
    format_rooms,
    split_address,
    status_color,
    status_label,
)
from listingstamp.models import AgentInfo, ListingFields, ResolvedImage
from listingstamp.render.primitives import Painter
from listingstamp.template_loader import load_layout

STAT_CAPTIONS = {"price": "Price", "sqft": "Sq Ft", "beds": "Beds", "baths": "Baths"}
_STAT_FORMATTERS = {
    "price": format_price,
    "sqft": format_number,
    "beds": format_rooms,
    "baths": format_rooms,
}


@dataclass(slots=True, kw_only=True)
class DrawOp:
    stage: int
    slot: str | None = None
    requires_image: bool = False

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        payload = {"op": type(self).__name__}
        for item in dataclasses.fields(self):
            payload[item.name] = getattr(self, item.name)
        return payload


@dataclass(slots=True, kw_only=True)
class FillRect(DrawOp):
    stage: int = STAGE_BACKGROUND
    x: float
    y: float
    w: float
    h: float
    color: str
    opacity: float = 1.0

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.fill_rect(self.x, self.y, self.w, self.h, self.color, self.opacity)


@dataclass(slots=True, kw_only=True)
class HLine(DrawOp):
    x: float
    y: float
    w: float
    color: str
    width: float = 1.0
    opacity: float = 1.0

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.hline(self.x, self.y, self.w, self.color, self.width, self.opacity)


@dataclass(slots=True, kw_only=True)
class CoverFit(DrawOp):
    stage: int = STAGE_PHOTOS
    requires_image: bool = True
    x: float
    y: float
    w: float
    h: float

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        if image is not None:
            painter.cover_fit(image, self.x, self.y, self.w, self.h)


@dataclass(slots=True, kw_only=True)
class Gradient(DrawOp):
    stage: int = STAGE_SCRIMS
    x: float
    y: float
    w: float
    h: float
    stops: Sequence[tuple[float, str, float]] = ()

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.vertical_gradient(self.x, self.y, self.w, self.h, self.stops)


@dataclass(slots=True, kw_only=True)
class Logo(DrawOp):
    stage: int = STAGE_LOGOS
    requires_image: bool = True
    x: float
    y: float
    max_height: float
    anchor: str = "left"
    max_width: float | None = None

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        if image is not None:
            painter.place_logo(image, self.x, self.y, self.max_height, self.anchor, self.max_width)


@dataclass(slots=True, kw_only=True)
class Badge(DrawOp):
    stage: int = STAGE_BADGE
    label: str
    x: float
    y: float
    color: str
    font_size: float = 28
    padding_x: float = 20
    height: float = 48
    radius: float = 6
    align: str = "center"
    text_color: str = "#ffffff"

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.draw_status_badge(
            self.label,
            self.x,
            self.y,
            self.color,
            font_size=self.font_size,
            padding_x=self.padding_x,
            height=self.height,
            radius=self.radius,
            align=self.align,
            text_color=self.text_color,
        )


@dataclass(slots=True, kw_only=True)
class Text(DrawOp):
    text: str
    x: float
    y: float
    size: float
    color: str
    bold: bool = False
    align: str = "left"
    max_width: float | None = None
    shadow: bool = False

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.draw_text(
            self.text,
            self.x,
            self.y,
            self.size,
            self.color,
            bold=self.bold,
            align=self.align,
            max_width=self.max_width,
            shadow=self.shadow,
        )


@dataclass(slots=True, kw_only=True)
class AddressBlock(DrawOp):
    stage: int = STAGE_ADDRESS
    street: str
    city_state_zip: str
    x: float
    y: float
    align: str = "left"
    street_size: float = 36
    city_size: float = 24
    line_gap: float = 10
    street_color: str = "#ffffff"
    city_color: str = "#dddddd"
    shadow: bool = False
    max_width: float | None = None

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.draw_address_block(
            self.street,
            self.city_state_zip,
            self.x,
            self.y,
            align=self.align,
            street_size=self.street_size,
            city_size=self.city_size,
            line_gap=self.line_gap,
            street_color=self.street_color,
            city_color=self.city_color,
            shadow=self.shadow,
            max_width=self.max_width,
        )


@dataclass(slots=True, kw_only=True)
class StatRow(DrawOp):
    stage: int = STAGE_STATS
    items: Sequence[tuple[str, str]]
    x: float
    y: float
    width: float
    value_size: float = 34
    caption_size: float = 18
    caption_gap: float = 8
    value_color: str = "#ffffff"
    caption_color: str = "#cbd5e1"
    separator_color: str | None = "#ffffff"
    separator_height: float = 60

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.draw_stat_row(
            self.items,
            self.x,
            self.y,
            self.width,
            value_size=self.value_size,
            caption_size=self.caption_size,
            caption_gap=self.caption_gap,
            value_color=self.value_color,
            caption_color=self.caption_color,
            separator_color=self.separator_color,
            separator_height=self.separator_height,
        )


@dataclass(slots=True, kw_only=True)
class AgentBlock(DrawOp):
    stage: int = STAGE_AGENT
    slot: str | None = SLOT_AGENT_HEADSHOT
    name_line: str = ""
    phone: str = ""
    inline_text: str = ""
    center_x: float
    center_y: float
    radius: float = 35
    gap: float = 15
    name_size: float = 22
    phone_size: float = 18
    name_color: str = "#ffffff"
    phone_color: str = "#dddddd"
    ring_color: str | None = "#ffffff"

    def execute(self, painter: Painter, image: Image.Image | None) -> None:
        painter.draw_agent_block(
            image,
            self.name_line,
            self.phone,
            self.center_x,
            self.center_y,
            radius=self.radius,
            gap=self.gap,
            name_size=self.name_size,
            phone_size=self.phone_size,
            name_color=self.name_color,
            phone_color=self.phone_color,
            ring_color=self.ring_color,
            inline_text=self.inline_text,
        )


def listing_stat_items(
    fields: ListingFields,
    order: Sequence[str] = ("sqft", "price", "beds", "baths"),
) -> list[tuple[str, str]]:
    """(value, caption) pairs for the stat row; blank values are left out."""
    items: list[tuple[str, str]] = []
    for key in order:
        formatter = _STAT_FORMATTERS.get(key)
        if formatter is None:
            continue
        value = formatter(getattr(fields, key, None))
        if value:
            items.append((value, STAT_CAPTIONS[key]))
    return items


class ListingTemplate:
    """Base class for registered layouts.

    Subclasses set the class attributes and implement :meth:`build_program`.
    Layout constants come from ``templates/resources/<template_id>.yaml``.
    """

    template_id: str = ""
    label: str = ""
    reference_size: tuple[int, int] = (1080, 1080)
    photo_count: int = 1
    mandatory_slots: frozenset[str] = frozenset({SLOT_PRIMARY_PHOTO})
    optional_slots: frozenset[str] = frozenset({SLOT_AGENT_HEADSHOT, SLOT_PRIMARY_LOGO, SLOT_SECONDARY_LOGO})

    def __init__(self, layout: Mapping[str, Any] | None = None, layout_dir: Path | None = None) -> None:
        self.layout: Mapping[str, Any] = layout if layout is not None else load_layout(self.template_id, layout_dir)

    @property
    def declared_slots(self) -> frozenset[str]:
        return self.mandatory_slots | self.optional_slots

    def scale_for(self, resolution: int) -> float:
        return max(1, int(resolution)) / float(self.reference_size[0])

    def output_size(self, resolution: int) -> tuple[int, int]:
        width = max(1, int(resolution))
        height = max(1, int(round(width * self.reference_size[1] / float(self.reference_size[0]))))
        return (width, height)

    def build_program(
        self,
        scale: float,
        fields: ListingFields,
        status: str,
        resolved: Mapping[str, ResolvedImage | None],
        agent: AgentInfo | None = None,
    ) -> list[DrawOp]:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.template_id,
            "label": self.label,
            "reference_size": list(self.reference_size),
            "photo_count": self.photo_count,
            "mandatory_slots": sorted(self.mandatory_slots),
            "optional_slots": sorted(self.optional_slots),
        }

    # -- shared program fragments ---------------------------------------------

    def _section(self, name: str) -> Mapping[str, Any]:
        section = self.layout.get(name)
        return section if isinstance(section, Mapping) else {}

    def _color(self, key: str) -> str:
        return str(self.layout["palette"][key])

    def _use_shadow(self, scale: float) -> bool:
        # Thumbnails below 0.2 scale skip the blurred shadow pass.
        return bool(self.layout.get("text_shadow", True)) and scale >= 0.2

    def _gradient_ops(self, name: str) -> list[DrawOp]:
        section = self._section(name)
        if not section:
            return []
        stops = [
            (float(pos), str(color), float(opacity))
            for pos, color, opacity in section.get("stops") or []
        ]
        return [
            Gradient(
                x=section.get("x", 0.0),
                y=section["y"],
                w=section.get("w", float(self.reference_size[0])),
                h=section["h"],
                stops=stops,
            )
        ]

    def _logo_ops(self, resolved: Mapping[str, ResolvedImage | None]) -> list[DrawOp]:
        section = self._section("logos")
        ops: list[DrawOp] = []
        for slot in LOGO_SLOTS:
            if slot not in self.declared_slots:
                continue
            spec = section.get(slot)
            if not isinstance(spec, Mapping):
                continue
            ops.append(
                Logo(
                    slot=slot,
                    x=spec["x"],
                    y=spec["y"],
                    max_height=spec["max_height"],
                    anchor=str(spec.get("anchor", "left")),
                    max_width=spec.get("max_width"),
                )
            )
        return ops

    def _badge_op(self, status: str) -> DrawOp:
        section = self._section("badge")
        return Badge(
            label=status_label(status),
            x=section["x"],
            y=section["y"],
            color=status_color(status),
            font_size=section.get("font_size", 28.0),
            padding_x=section.get("padding_x", 20.0),
            height=section.get("height", 48.0),
            radius=section.get("radius", 6.0),
            align=str(section.get("align", "center")),
        )

    def _address_op(self, fields: ListingFields, scale: float) -> list[DrawOp]:
        street, city_state_zip = split_address(fields.address)
        if not street and not city_state_zip:
            return []
        section = self._section("address")
        return [
            AddressBlock(
                street=street,
                city_state_zip=city_state_zip,
                x=section["x"],
                y=section["y"],
                align=str(section.get("align", "left")),
                street_size=section.get("street_size", 36.0),
                city_size=section.get("city_size", 24.0),
                line_gap=section.get("line_gap", 10.0),
                street_color=str(section.get("street_color", self._color("text"))),
                city_color=str(section.get("city_color", self._color("muted"))),
                shadow=bool(section.get("shadow", True)) and self._use_shadow(scale),
                max_width=section.get("max_width"),
            )
        ]

    def _stat_ops(self, fields: ListingFields) -> list[DrawOp]:
        section = self._section("stats")
        items = listing_stat_items(fields, tuple(section.get("order") or ("sqft", "price", "beds", "baths")))
        if not items:
            return []
        return [
            StatRow(
                items=items,
                x=section.get("x", 0.0),
                y=section["y"],
                width=section.get("width", float(self.reference_size[0])),
                value_size=section.get("value_size", 34.0),
                caption_size=section.get("caption_size", 18.0),
                caption_gap=section.get("caption_gap", 8.0),
                value_color=str(section.get("value_color", self._color("text"))),
                caption_color=str(section.get("caption_color", self._color("caption"))),
                separator_color=str(section.get("separator_color", self._color("separator"))),
                separator_height=section.get("separator_height", 60.0),
            )
        ]

    def _agent_ops(
        self,
        agent: AgentInfo | None,
        resolved: Mapping[str, ResolvedImage | None],
    ) -> list[DrawOp]:
        if SLOT_AGENT_HEADSHOT not in self.declared_slots:
            return []
        agent = agent or AgentInfo()
        has_headshot = resolved.get(SLOT_AGENT_HEADSHOT) is not None
        if agent.is_empty and not has_headshot:
            return []
        section = self._section("agent")
        phone = clean_text(agent.phone) or ""
        return [
            AgentBlock(
                name_line=agent_name_line(agent.name, phone),
                phone=phone if clean_text(agent.name) else "",
                inline_text=agent_name_line(agent.name, phone, inline_phone=True),
                center_x=section.get("center_x", self.reference_size[0] / 2.0),
                center_y=section["center_y"],
                radius=section.get("radius", 35.0),
                gap=section.get("gap", 15.0),
                name_size=section.get("name_size", 22.0),
                phone_size=section.get("phone_size", 18.0),
                name_color=str(section.get("name_color", self._color("text"))),
                phone_color=str(section.get("phone_color", self._color("muted"))),
                ring_color=str(section.get("ring_color", self._color("ring"))),
            )
        ]

    def _band_ops(self, names: Sequence[str]) -> list[DrawOp]:
        ops: list[DrawOp] = []
        for name in names:
            section = self._section(name)
            if not section:
                continue
            ops.append(
                FillRect(
                    x=section.get("x", 0.0),
                    y=section.get("y", 0.0),
                    w=section.get("w", float(self.reference_size[0])),
                    h=section["h"],
                    color=str(section.get("color", self._color("primary"))),
                    opacity=section.get("opacity", 1.0),
                )
            )
        return ops
