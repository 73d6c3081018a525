from __future__ import annotations

import platform
from functools import lru_cache
from pathlib import Path

from PIL import ImageDraw, ImageFont


def _system_font_candidates(bold: bool) -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        if bold:
            return [
                Path(r"C:\Windows\Fonts\segoeuib.ttf"),
                Path(r"C:\Windows\Fonts\arialbd.ttf"),
            ]
        return [
            Path(r"C:\Windows\Fonts\segoeui.ttf"),
            Path(r"C:\Windows\Fonts\arial.ttf"),
        ]
    if "darwin" in system:
        if bold:
            return [
                Path("/System/Library/Fonts/Supplemental/Arial Bold.ttf"),
                Path("/Library/Fonts/Arial Bold.ttf"),
            ]
        return [
            Path("/System/Library/Fonts/Supplemental/Arial.ttf"),
            Path("/Library/Fonts/Arial.ttf"),
            Path("/System/Library/Fonts/Helvetica.ttc"),
        ]
    if bold:
        return [
            Path("/usr/share/fonts/truetype/inter/Inter-Bold.ttf"),
            Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
            Path("/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf"),
            Path("/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf"),
        ]
    return [
        Path("/usr/share/fonts/truetype/inter/Inter-Regular.ttf"),
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
        Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
        Path("/usr/share/fonts/dejavu/DejaVuSans.ttf"),
    ]


@lru_cache(maxsize=256)
def _load_font_cached(font_path: str | None, size: int, bold: bool) -> ImageFont.ImageFont:
    candidates: list[Path] = []
    if font_path:
        candidates.append(Path(font_path))
    candidates.extend(_system_font_candidates(bold))
    for candidate in candidates:
        if candidate.exists():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


def load_font(font_path: Path | str | None, size: int, bold: bool = False) -> ImageFont.ImageFont:
    return _load_font_cached(str(font_path) if font_path else None, max(1, int(size)), bool(bold))


def text_size(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont) -> tuple[int, int]:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    return right - left, bottom - top


def ellipsize(
    draw: ImageDraw.ImageDraw,
    text: str,
    font: ImageFont.ImageFont,
    max_width: int,
) -> str:
    if max_width <= 0:
        return ""
    width, _ = text_size(draw, text, font)
    if width <= max_width:
        return text
    ellipsis = "..."
    for cut in range(len(text), -1, -1):
        candidate = text[:cut].rstrip() + ellipsis
        cand_width, _ = text_size(draw, candidate, font)
        if cand_width <= max_width:
            return candidate
    return ellipsis


def fit_font(
    draw: ImageDraw.ImageDraw,
    text: str,
    font_path: Path | str | None,
    size: int,
    max_width: int,
    *,
    bold: bool = False,
    min_size: int = 8,
) -> ImageFont.ImageFont:
    """Largest font not above `size` whose rendering of `text` fits `max_width`."""
    current = max(1, int(size))
    minimum = max(1, min(current, int(min_size)))
    font = load_font(font_path, current, bold=bold)
    if max_width <= 0:
        return font
    step = max(1, int(round(current * 0.08)))
    while current > minimum:
        width, _ = text_size(draw, text, font)
        if width <= max_width:
            return font
        current = max(minimum, current - step)
        font = load_font(font_path, current, bold=bold)
    return font
