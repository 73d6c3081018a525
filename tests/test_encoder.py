import pytest
from PIL import Image

from listingstamp.encoder import encode_image, resolve_output_format
from listingstamp.errors import EncodingFailure


def test_encode_png_and_jpeg() -> None:
    image = Image.new("RGBA", (20, 10), color="#336699")
    assert encode_image(image, "png")[:8] == b"\x89PNG\r\n\x1a\n"
    assert encode_image(image, "jpg", quality=80)[:2] == b"\xff\xd8"


def test_unknown_format_is_an_encoding_failure() -> None:
    with pytest.raises(EncodingFailure):
        encode_image(Image.new("RGB", (4, 4)), "gif")
    with pytest.raises(ValueError):
        resolve_output_format("tiff")
    assert resolve_output_format("JPEG") == ("jpg", "JPEG")
