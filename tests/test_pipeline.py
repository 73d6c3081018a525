import io
import threading

import pytest
import requests
from PIL import Image

from listingstamp.assets import AssetResolver
from listingstamp.compositor import Compositor
from listingstamp.config import DEFAULT_CONFIG
from listingstamp.errors import MandatoryAssetMissing, TemplateNotFound
from listingstamp.models import AgentInfo, BrandAsset, ListingFields, RenderRequest, ResolvedImage
from listingstamp.pipeline import RenderPipeline, bind_images, preview_resolution
from listingstamp.templates import get_template
from listingstamp.templates.base import AddressBlock, StatRow

NAVY = (11, 31, 58)
ORANGE = (249, 115, 22)
RED = (255, 0, 0)

FIELDS = ListingFields(
    address="123 Main St, Austin, TX 78701",
    price=450000,
    beds=3,
    baths=2,
    sqft=2100,
    status="just_listed",
)


def _photo(color: str = "#ff0000", size: tuple[int, int] = (1600, 1200)) -> Image.Image:
    return Image.new("RGB", size, color=color)


def _request(**kwargs) -> RenderRequest:
    payload = {
        "template_id": "navy_header",
        "fields": FIELDS,
        "images": {"primary_photo": _photo()},
        "agent": AgentInfo("Jane Doe", "512-555-0100"),
    }
    payload.update(kwargs)
    return RenderRequest(**payload)


def _decode(result) -> Image.Image:
    return Image.open(io.BytesIO(result.data)).convert("RGB")


class _ExplodingResolver(AssetResolver):
    def resolve_all(self, bindings):
        raise AssertionError("assets must not load for an unknown template")


def test_navy_header_export_layers_in_stage_order() -> None:
    result = RenderPipeline().render(_request())
    assert result is not None
    assert (result.width, result.height) == (1080, 1350)
    image = _decode(result)
    assert image.size == (1080, 1350)
    assert image.getpixel((540, 20)) == NAVY
    assert image.getpixel((5, 1345)) == NAVY
    assert image.getpixel((540, 400)) == RED
    # badge sits on top of the photo
    assert image.getpixel((50, 205)) == ORANGE


def test_export_is_deterministic() -> None:
    pipeline = RenderPipeline()
    request = _request()
    assert pipeline.render(request).data == pipeline.render(request).data


def test_preview_uses_scaled_resolution() -> None:
    result = RenderPipeline().preview(_request(), 0.5)
    assert (result.width, result.height) == (540, 675)
    assert preview_resolution(1080, 0.25) == 270


def test_small_and_large_renders_share_layout() -> None:
    pipeline = RenderPipeline()
    small = _decode(pipeline.render(_request(resolution=540)))
    large = _decode(pipeline.render(_request(resolution=1080)))
    # sample well inside flat regions
    for x, y in [(270, 10), (270, 200), (25, 102), (3, 672)]:
        assert small.getpixel((x, y)) == large.getpixel((x * 2, y * 2))


def test_missing_optional_assets_are_skipped(tmp_path) -> None:
    request = _request(
        images={
            "primary_photo": _photo(),
            "primary_logo": str(tmp_path / "missing-logo.png"),
        }
    )
    result = RenderPipeline().render(request)
    assert result is not None
    assert set(result.skipped_slots) == {"primary_logo", "secondary_logo", "agent_headshot"}
    assert _decode(result).getpixel((60, 70)) == NAVY


def test_unrelated_slots_are_ignored() -> None:
    request = _request(images={"primary_photo": _photo(), "secondary_photo": _photo("#00ff00")})
    result = RenderPipeline().render(request)
    assert result is not None
    assert _decode(result).getpixel((540, 400)) == RED


def test_duo_split_requires_both_photos() -> None:
    pipeline = RenderPipeline()
    request = _request(template_id="duo_split")
    assert pipeline.render(request) is None
    with pytest.raises(MandatoryAssetMissing) as excinfo:
        pipeline.render(request, strict=True)
    assert excinfo.value.slots == ("secondary_photo",)

    both = _request(
        template_id="duo_split",
        images={"primary_photo": _photo(), "secondary_photo": _photo("#00ff00")},
    )
    result = pipeline.render(both)
    assert (result.width, result.height) == (1080, 1350)


def test_missing_primary_photo_produces_nothing(tmp_path) -> None:
    request = _request(images={"primary_photo": str(tmp_path / "nope.jpg")})
    assert RenderPipeline().render(request) is None


def test_unknown_template_fails_before_loading_assets() -> None:
    pipeline = RenderPipeline(resolver=_ExplodingResolver())
    with pytest.raises(TemplateNotFound):
        pipeline.render(_request(template_id="does_not_exist"))


def test_compositor_rejects_missing_mandatory_slot() -> None:
    template = get_template("navy_header")
    with pytest.raises(MandatoryAssetMissing):
        Compositor().compose(template, _request(), {"primary_photo": None})
    resolved = {"primary_photo": ResolvedImage("primary_photo", _photo().convert("RGBA"))}
    composition = Compositor().compose(template, _request(), resolved)
    assert composition.image.size == (1080, 1350)
    assert [op.stage for op in composition.program] == sorted(op.stage for op in composition.program)


@pytest.mark.parametrize("template_id", ["classic_square", "story_overlay", "landscape_banner"])
def test_other_templates_render(template_id: str) -> None:
    result = RenderPipeline(output_format="jpeg").render(_request(template_id=template_id, resolution=600))
    assert result is not None
    assert result.width == 600
    assert result.data[:2] == b"\xff\xd8"


def test_bind_images_prefers_custom_logo_and_falls_back_to_default() -> None:
    bindings = bind_images(
        photos=["a.jpg", "", "b.jpg"],
        headshot="me.png",
        logos={
            "primary_logo": BrandAsset(custom="mine.png", use_default=False),
            "secondary_logo": BrandAsset(custom="ignored.png", use_default=True),
        },
        default_logos={"primary_logo": "brand.png", "secondary_logo": "office.png"},
    )
    assert bindings == {
        "primary_photo": "a.jpg",
        "secondary_photo": "b.jpg",
        "agent_headshot": "me.png",
        "primary_logo": "mine.png",
        "secondary_logo": "office.png",
    }


class _StubResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        self.content = b""

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def close(self) -> None:
        pass


class _StubSession:
    def __init__(self, status_code: int = 404, gate: threading.Event | None = None) -> None:
        self.status_code = status_code
        self.gate = gate

    def get(self, url, timeout=None, headers=None):
        if self.gate is not None:
            self.gate.wait(5)
        return _StubResponse(self.status_code)


def _png_bytes(color: str, size: tuple[int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_hanging_logos_do_not_block_the_photo() -> None:
    gate = threading.Event()
    pipeline = RenderPipeline.from_config(
        {**DEFAULT_CONFIG, "asset_timeout_s": 0.5},
        session=_StubSession(status_code=200, gate=gate),
    )
    request = _request(
        images={
            "primary_logo": "https://cdn.example.com/slow-1.png",
            "secondary_logo": "https://cdn.example.com/slow-2.png",
            "primary_photo": _png_bytes("#ff0000", (400, 300)),
        },
        resolution=540,
    )
    try:
        result = pipeline.render(request)
    finally:
        gate.set()
    assert result is not None
    assert {"primary_logo", "secondary_logo"} <= set(result.skipped_slots)
    assert _decode(result).getpixel((270, 200)) == RED


def test_navy_header_listing_scenario(tmp_path) -> None:
    photo_path = tmp_path / "listing.jpg"
    Image.new("RGB", (4000, 3000), color="#336699").save(photo_path, format="JPEG", quality=90)
    request = RenderRequest(
        template_id="navy_header",
        fields=FIELDS,
        images={
            "primary_photo": str(photo_path),
            "primary_logo": "https://cdn.example.com/brand/logo.png",
        },
        agent=AgentInfo(),
        resolution=1080,
    )
    pipeline = RenderPipeline(resolver=AssetResolver(session=_StubSession(status_code=404)))

    result = pipeline.render(request)
    assert result is not None
    assert (result.width, result.height) == (1080, 1350)
    assert "primary_logo" in result.skipped_slots
    image = _decode(result)
    assert image.getpixel((540, 20)) == NAVY
    assert image.getpixel((50, 205)) == ORANGE

    template = get_template("navy_header")
    resolved = pipeline.resolve_assets(template, request)
    assert resolved["primary_photo"].image.size == (4000, 3000)
    assert resolved["primary_logo"] is None
    program = Compositor().compose(template, request, resolved).program

    stat_rows = [op for op in program if isinstance(op, StatRow)]
    assert len(stat_rows) == 1
    assert [value for value, _ in stat_rows[0].items] == ["2,100", "$450,000", "3", "2"]
    assert [caption for _, caption in stat_rows[0].items] == ["Sq Ft", "Price", "Beds", "Baths"]

    addresses = [op for op in program if isinstance(op, AddressBlock)]
    assert len(addresses) == 1
    assert addresses[0].street == "123 Main St"
    assert addresses[0].city_state_zip == "Austin, TX 78701"

    # street line over the photo scrim and stat values on the navy footer are drawn in white
    street_band = image.crop((40, 880, 640, 930))
    assert sum(1 for pixel in street_band.getdata() if min(pixel) > 220) > 50
    stat_band = image.crop((0, 1040, 1080, 1090))
    assert sum(1 for pixel in stat_band.getdata() if min(pixel) > 220) > 50
