from __future__ import annotations

import io

from PIL import Image

from listingstamp.errors import EncodingFailure


def resolve_output_format(fmt: str) -> tuple[str, str]:
    """Return ``(file extension, Pillow format name)`` for a user format string."""
    f = (fmt or "").lower()
    if f in {"jpeg", "jpg"}:
        return "jpg", "JPEG"
    if f == "png":
        return "png", "PNG"
    raise ValueError(f"output format must be jpeg/jpg or png, got: {fmt!r}")


def encode_image(image: Image.Image, fmt: str = "png", quality: int = 92) -> bytes:
    try:
        _, pil_format = resolve_output_format(fmt)
    except ValueError as exc:
        raise EncodingFailure(str(exc)) from exc
    buffer = io.BytesIO()
    try:
        if pil_format == "JPEG":
            image.convert("RGB").save(
                buffer,
                format="JPEG",
                quality=max(1, min(100, int(quality))),
                optimize=True,
                progressive=True,
            )
        else:
            rgb = image if image.mode in {"RGB", "RGBA"} else image.convert("RGB")
            rgb.save(buffer, format="PNG", optimize=False)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodingFailure(f"cannot encode {image.width}x{image.height} image as {pil_format}: {exc}") from exc
    return buffer.getvalue()
