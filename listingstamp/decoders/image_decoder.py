from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from urllib.parse import unquote_to_bytes

from PIL import Image, ImageOps, UnidentifiedImageError

from listingstamp.constants import HEIF_EXTENSIONS, SUPPORTED_EXTENSIONS

_HEIF_REGISTERED = False

# Decompression-bomb ceiling for a single listing photo.
MAX_DECODED_PIXELS = 80_000_000


def _register_heif_opener() -> bool:
    global _HEIF_REGISTERED
    if _HEIF_REGISTERED:
        return True
    try:
        from pillow_heif import register_heif_opener
    except ImportError:
        return False
    register_heif_opener()
    _HEIF_REGISTERED = True
    return True


def _finalize(image: Image.Image) -> Image.Image:
    if image.width * image.height > MAX_DECODED_PIXELS:
        raise RuntimeError(f"image too large: {image.width}x{image.height}")
    image = ImageOps.exif_transpose(image)
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image.copy()


def decode_bytes(data: bytes) -> Image.Image:
    if not data:
        raise RuntimeError("empty image payload")
    _register_heif_opener()
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return _finalize(image)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise RuntimeError(f"undecodable image payload: {exc}") from exc


def decode_data_uri(uri: str) -> Image.Image:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise RuntimeError("malformed data URI")
    try:
        if header.endswith(";base64"):
            data = base64.b64decode(payload, validate=False)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as exc:
        raise RuntimeError(f"malformed data URI payload: {exc}") from exc
    return decode_bytes(data)


def decode_image(path: Path) -> Image.Image:
    ext = path.suffix.lower()
    if ext and ext not in SUPPORTED_EXTENSIONS:
        raise RuntimeError(f"unsupported image format: {path.suffix}")
    if ext in HEIF_EXTENSIONS and not _register_heif_opener():
        raise RuntimeError("pillow-heif is required to decode HEIF/HEIC/HIF")
    try:
        with Image.open(path) as image:
            image.load()
            return _finalize(image)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise RuntimeError(f"cannot decode {path}: {exc}") from exc
