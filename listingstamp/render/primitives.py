"""Scale-normalized drawing primitives.

Every coordinate, length, radius, stroke width and font size handed to a
:class:`Painter` is expressed in the template's reference canvas units and is
multiplied by the painter's scale factor before touching pixels.
"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from listingstamp.render.image_modes import circle_mask, cover_fit_image, scale_to_height
from listingstamp.render.typography import ellipsize, fit_font, load_font, text_size

_ALIGN_ANCHORS = {"left": "la", "center": "ma", "right": "ra"}


def _rgba(color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    rgb = ImageColor.getrgb(color)
    alpha = rgb[3] if len(rgb) == 4 else 255
    alpha = int(round(alpha * max(0.0, min(1.0, float(opacity)))))
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), alpha)


class Painter:
    def __init__(
        self,
        canvas: Image.Image,
        scale: float,
        *,
        font_path: Path | str | None = None,
        bold_font_path: Path | str | None = None,
    ) -> None:
        if canvas.mode != "RGBA":
            canvas = canvas.convert("RGBA")
        self.canvas = canvas
        self.scale = float(scale)
        self.font_path = font_path
        self.bold_font_path = bold_font_path or font_path
        self.draw = ImageDraw.Draw(self.canvas)

    def px(self, value: float) -> int:
        return int(round(float(value) * self.scale))

    def stroke(self, value: float) -> int:
        return max(1, self.px(value))

    def font(self, size: float, bold: bool = False) -> ImageFont.ImageFont:
        path = self.bold_font_path if bold else self.font_path
        return load_font(path, max(1, self.px(size)), bold=bold)

    def _fit_font(self, text: str, size: float, max_width: float | None, bold: bool) -> ImageFont.ImageFont:
        if not max_width:
            return self.font(size, bold=bold)
        path = self.bold_font_path if bold else self.font_path
        return fit_font(
            self.draw,
            text,
            path,
            max(1, self.px(size)),
            self.px(max_width),
            bold=bold,
            min_size=max(1, self.px(size * 0.6)),
        )

    def _composite(self, layer: Image.Image, dest: tuple[int, int] = (0, 0)) -> None:
        left, top = int(dest[0]), int(dest[1])
        if left < 0 or top < 0:
            crop_left, crop_top = max(0, -left), max(0, -top)
            if crop_left >= layer.width or crop_top >= layer.height:
                return
            layer = layer.crop((crop_left, crop_top, layer.width, layer.height))
            left, top = max(0, left), max(0, top)
        if left >= self.canvas.width or top >= self.canvas.height:
            return
        self.canvas.alpha_composite(layer, (left, top))

    # -- shapes ---------------------------------------------------------------

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str, opacity: float = 1.0) -> None:
        left, top = self.px(x), self.px(y)
        right, bottom = self.px(x + w), self.px(y + h)
        if right <= left or bottom <= top:
            return
        fill = _rgba(color, opacity)
        if fill[3] >= 255:
            self.draw.rectangle((left, top, right - 1, bottom - 1), fill=fill)
            return
        overlay = Image.new("RGBA", self.canvas.size, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).rectangle((left, top, right - 1, bottom - 1), fill=fill)
        self._composite(overlay)

    def hline(self, x: float, y: float, w: float, color: str, width: float = 1.0, opacity: float = 1.0) -> None:
        thickness = self.stroke(width)
        top = self.px(y) - thickness // 2
        rect = (self.px(x), top, self.px(x + w) - 1, top + thickness - 1)
        fill = _rgba(color, opacity)
        if fill[3] >= 255:
            self.draw.rectangle(rect, fill=fill)
            return
        overlay = Image.new("RGBA", self.canvas.size, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).rectangle(rect, fill=fill)
        self._composite(overlay)

    def vertical_gradient(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        stops: Sequence[tuple[float, str, float]],
    ) -> None:
        """Blend a top-to-bottom scrim.

        ``stops`` is a list of ``(position 0..1, color, opacity 0..1)``.
        """
        left, top = self.px(x), self.px(y)
        right, bottom = self.px(x + w), self.px(y + h)
        width = right - left
        height = bottom - top
        if width <= 0 or height <= 0 or not stops:
            return
        ordered = sorted(
            ((max(0.0, min(1.0, float(pos))), _rgba(color, opacity)) for pos, color, opacity in stops),
            key=lambda item: item[0],
        )
        if all(color[3] == 0 for _, color in ordered):
            return
        denominator = max(1, height - 1)
        pixels: list[tuple[int, int, int, int]] = []
        for row in range(height):
            t = row / float(denominator)
            pixels.append(_interpolate_stops(ordered, t))
        gradient = Image.new("RGBA", (1, height))
        gradient.putdata(pixels)
        if width > 1:
            gradient = gradient.resize((width, height), resample=Image.Resampling.NEAREST)
        overlay = Image.new("RGBA", self.canvas.size, (0, 0, 0, 0))
        overlay.paste(gradient, (left, top))
        self._composite(overlay)

    # -- images ---------------------------------------------------------------

    def cover_fit(self, image: Image.Image, x: float, y: float, w: float, h: float) -> tuple[int, int, int, int]:
        """Fill the box with a centered, aspect-preserving crop of ``image``."""
        left, top = self.px(x), self.px(y)
        right, bottom = self.px(x + w), self.px(y + h)
        box_w, box_h = max(1, right - left), max(1, bottom - top)
        fitted = cover_fit_image(image.convert("RGBA"), (box_w, box_h))
        self._composite(fitted, (left, top))
        return (left, top, left + box_w, top + box_h)

    def place_logo(
        self,
        image: Image.Image,
        x: float,
        y: float,
        max_height: float,
        anchor: str = "left",
        max_width: float | None = None,
    ) -> float:
        """Draw a logo at ``max_height`` keeping its aspect.

        ``x`` is the left edge for ``anchor="left"`` and the right edge for
        ``anchor="right"``. Returns the drawn width in reference units.
        """
        if image.width <= 0 or image.height <= 0:
            return 0.0
        height = max(1, self.px(max_height))
        logo = scale_to_height(image.convert("RGBA"), height)
        if max_width is not None and logo.width > self.px(max_width):
            limit = max(1, self.px(max_width))
            logo = logo.resize(
                (limit, max(1, int(round(logo.height * limit / float(logo.width))))),
                Image.Resampling.LANCZOS,
            )
        top = self.px(y) + (height - logo.height) // 2
        left = self.px(x) - logo.width if anchor == "right" else self.px(x)
        self._composite(logo, (left, top))
        return logo.width / self.scale if self.scale else 0.0

    def circle_image(
        self,
        image: Image.Image,
        center_x: float,
        center_y: float,
        radius: float,
        ring_color: str | None = "#ffffff",
        ring_width: float = 2.0,
    ) -> None:
        diameter = max(2, self.px(radius * 2))
        face = cover_fit_image(image.convert("RGBA"), (diameter, diameter))
        mask = circle_mask(diameter)
        alpha = face.getchannel("A")
        face.putalpha(Image.composite(alpha, Image.new("L", face.size, 0), mask))
        left = self.px(center_x) - diameter // 2
        top = self.px(center_y) - diameter // 2
        self._composite(face, (left, top))
        if ring_color:
            self.draw.ellipse(
                (left, top, left + diameter - 1, top + diameter - 1),
                outline=ring_color,
                width=self.stroke(ring_width),
            )

    # -- text -----------------------------------------------------------------

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        color: str,
        *,
        bold: bool = False,
        align: str = "left",
        max_width: float | None = None,
        shadow: bool = False,
        shadow_color: str = "#000000",
    ) -> tuple[int, int, int, int]:
        """Draw one line whose top sits at ``y``; returns the pixel bbox."""
        if not text:
            return (0, 0, 0, 0)
        font = self._fit_font(text, size, max_width, bold)
        if max_width:
            text = ellipsize(self.draw, text, font, self.px(max_width))
        anchor = _ALIGN_ANCHORS.get(align, "la")
        position = (self.px(x), self.px(y))
        if shadow:
            self._text_shadow(text, position, font, anchor, shadow_color)
        self.draw.text(position, text, font=font, fill=color, anchor=anchor)
        return self.draw.textbbox(position, text, font=font, anchor=anchor)

    def _text_shadow(
        self,
        text: str,
        position: tuple[int, int],
        font: ImageFont.ImageFont,
        anchor: str,
        color: str,
    ) -> None:
        offset = max(1, self.px(2))
        layer = Image.new("RGBA", self.canvas.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).text(
            (position[0] + offset, position[1] + offset),
            text,
            font=font,
            fill=_rgba(color, 0.6),
            anchor=anchor,
        )
        layer = layer.filter(ImageFilter.GaussianBlur(radius=max(1, self.px(3))))
        self._composite(layer)

    def draw_status_badge(
        self,
        label: str,
        anchor_x: float,
        anchor_y: float,
        color: str,
        *,
        font_size: float = 28,
        padding_x: float = 20,
        height: float = 48,
        radius: float = 6,
        align: str = "center",
        text_color: str = "#ffffff",
    ) -> tuple[int, int, int, int]:
        """Rounded badge sized to its label.

        ``anchor_x`` is the badge center, left or right edge depending on ``align``;
        ``anchor_y`` is its top edge.
        """
        font = self.font(font_size, bold=True)
        label_width, _ = text_size(self.draw, label, font)
        badge_w = label_width + 2 * self.px(padding_x)
        badge_h = max(1, self.px(height))
        ax = self.px(anchor_x)
        if align == "left":
            left = ax
        elif align == "right":
            left = ax - badge_w
        else:
            left = ax - badge_w // 2
        top = self.px(anchor_y)
        rect = (left, top, left + badge_w, top + badge_h)
        self.draw.rounded_rectangle(rect, radius=self.px(radius), fill=color)
        self.draw.text(
            (left + badge_w / 2.0, top + badge_h / 2.0),
            label,
            font=font,
            fill=text_color,
            anchor="mm",
        )
        return rect

    def draw_address_block(
        self,
        street: str,
        city_state_zip: str,
        x: float,
        y: float,
        *,
        align: str = "left",
        street_size: float = 36,
        city_size: float = 24,
        line_gap: float = 10,
        street_color: str = "#ffffff",
        city_color: str = "#dddddd",
        shadow: bool = False,
        max_width: float | None = None,
    ) -> tuple[int, int, int, int]:
        """Bold primary street line over a lighter city/state/zip line."""
        boxes = []
        if street:
            boxes.append(
                self.draw_text(
                    street, x, y, street_size, street_color,
                    bold=True, align=align, max_width=max_width, shadow=shadow,
                )
            )
        if city_state_zip:
            city_y = y + street_size + line_gap if street else y
            boxes.append(
                self.draw_text(
                    city_state_zip, x, city_y, city_size, city_color,
                    align=align, max_width=max_width, shadow=shadow,
                )
            )
        if not boxes:
            return (0, 0, 0, 0)
        return (
            min(box[0] for box in boxes),
            min(box[1] for box in boxes),
            max(box[2] for box in boxes),
            max(box[3] for box in boxes),
        )

    def draw_stat_row(
        self,
        items: Sequence[tuple[str, str]],
        x: float,
        y: float,
        width: float,
        *,
        value_size: float = 34,
        caption_size: float = 18,
        caption_gap: float = 8,
        value_color: str = "#ffffff",
        caption_color: str = "#cbd5e1",
        separator_color: str | None = "#ffffff",
        separator_height: float = 60,
        separator_opacity: float = 0.35,
    ) -> list[float]:
        """Evenly spaced value/caption columns with separators between them.

        Returns the column centers in reference units.
        """
        count = len(items)
        if count == 0 or width <= 0:
            return []
        column_w = width / float(count)
        centers: list[float] = []
        for index, (value, caption) in enumerate(items):
            center = x + column_w * (index + 0.5)
            centers.append(center)
            if value:
                self.draw_text(value, center, y, value_size, value_color, bold=True, align="center", max_width=column_w * 0.9)
            if caption:
                self.draw_text(
                    caption.upper(), center, y + value_size + caption_gap, caption_size, caption_color,
                    align="center", max_width=column_w * 0.9,
                )
        if separator_color:
            overlay = Image.new("RGBA", self.canvas.size, (0, 0, 0, 0))
            overlay_draw = ImageDraw.Draw(overlay)
            fill = _rgba(separator_color, separator_opacity)
            for index in range(1, count):
                sep_x = self.px(x + column_w * index)
                overlay_draw.line(
                    [(sep_x, self.px(y)), (sep_x, self.px(y + separator_height))],
                    fill=fill,
                    width=self.stroke(1.5),
                )
            self._composite(overlay)
        return centers

    def draw_agent_block(
        self,
        headshot: Image.Image | None,
        name_line: str,
        phone: str,
        center_x: float,
        center_y: float,
        *,
        radius: float = 35,
        gap: float = 15,
        name_size: float = 22,
        phone_size: float = 18,
        name_color: str = "#ffffff",
        phone_color: str = "#dddddd",
        ring_color: str | None = "#ffffff",
        inline_text: str = "",
    ) -> None:
        """Circular headshot followed by name/phone, centered on ``center_x``.

        Without a headshot only ``inline_text`` is drawn as one centered line.
        """
        if headshot is None:
            if inline_text:
                self.draw_text(inline_text, center_x, center_y - name_size / 2.0, name_size, name_color, bold=True, align="center")
            return
        if not name_line:
            self.circle_image(headshot, center_x, center_y, radius, ring_color=ring_color)
            return
        name_font = self.font(name_size, bold=True)
        phone_font = self.font(phone_size)
        name_w, _ = text_size(self.draw, name_line, name_font)
        phone_w, _ = text_size(self.draw, phone, phone_font) if phone else (0, 0)
        text_w = max(name_w, phone_w) / self.scale if self.scale else 0.0
        total = radius * 2 + gap + text_w
        circle_x = center_x - total / 2.0 + radius
        self.circle_image(headshot, circle_x, center_y, radius, ring_color=ring_color)
        text_x = circle_x + radius + gap
        if phone:
            block_h = name_size + 6 + phone_size
            top = center_y - block_h / 2.0
            self.draw_text(name_line, text_x, top, name_size, name_color, bold=True)
            self.draw_text(phone, text_x, top + name_size + 6, phone_size, phone_color)
        else:
            self.draw_text(name_line, text_x, center_y - name_size / 2.0, name_size, name_color, bold=True)


def _interpolate_stops(
    stops: list[tuple[float, tuple[int, int, int, int]]],
    t: float,
) -> tuple[int, int, int, int]:
    if t <= stops[0][0]:
        return stops[0][1]
    for (p0, c0), (p1, c1) in zip(stops, stops[1:]):
        if t <= p1:
            span = p1 - p0
            k = 0.0 if span <= 0 else (t - p0) / span
            return tuple(int(round(a + (b - a) * k)) for a, b in zip(c0, c1))  # type: ignore[return-value]
    return stops[-1][1]
