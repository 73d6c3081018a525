from __future__ import annotations

from PIL import Image, ImageDraw

_SUPERSAMPLE = 4


def cover_crop_box(src_width: int, src_height: int, box_width: int, box_height: int) -> tuple[int, int, int, int]:
    """Largest centered region of the source whose aspect equals the box aspect.

    The longer source axis (relative to the box) is cropped symmetrically.
    """
    if src_width <= 0 or src_height <= 0 or box_width <= 0 or box_height <= 0:
        return (0, 0, max(0, src_width), max(0, src_height))
    target_ratio = box_width / float(box_height)
    ratio = src_width / float(src_height)
    if abs(ratio - target_ratio) < 1e-9:
        return (0, 0, src_width, src_height)
    if ratio > target_ratio:
        new_width = max(1, min(src_width, int(round(src_height * target_ratio))))
        left = (src_width - new_width) // 2
        return (left, 0, left + new_width, src_height)
    new_height = max(1, min(src_height, int(round(src_width / target_ratio))))
    top = (src_height - new_height) // 2
    return (0, top, src_width, top + new_height)


def cover_fit_image(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    """Crop-and-scale `image` so it exactly fills `size` without distortion."""
    box_width, box_height = max(1, int(size[0])), max(1, int(size[1]))
    crop = cover_crop_box(image.width, image.height, box_width, box_height)
    return image.resize(
        (box_width, box_height),
        resample=Image.Resampling.LANCZOS,
        box=crop,
    )


def scale_to_height(image: Image.Image, height: int) -> Image.Image:
    target_height = max(1, int(round(height)))
    if image.height <= 0:
        return image
    target_width = max(1, int(round(image.width * (target_height / float(image.height)))))
    if (target_width, target_height) == image.size:
        return image
    return image.resize((target_width, target_height), Image.Resampling.LANCZOS)


def circle_mask(diameter: int) -> Image.Image:
    """Anti-aliased circular alpha mask."""
    size = max(1, int(diameter))
    big = Image.new("L", (size * _SUPERSAMPLE, size * _SUPERSAMPLE), 0)
    ImageDraw.Draw(big).ellipse((0, 0, big.width - 1, big.height - 1), fill=255)
    return big.resize((size, size), Image.Resampling.LANCZOS)
