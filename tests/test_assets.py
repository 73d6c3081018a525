import base64
import io
import threading

import requests
from PIL import Image

from listingstamp.assets import AssetResolver, classify_reference, same_origin_proxy


def _png_bytes(color: str = "#00ff00", size: tuple[int, int] = (8, 6)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


class _FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def close(self) -> None:
        pass


class _FakeSession:
    def __init__(self, content: bytes = b"", status_code: int = 200, gate: threading.Event | None = None) -> None:
        self.content = content
        self.status_code = status_code
        self.gate = gate
        self.urls: list[str] = []

    def get(self, url, timeout=None, headers=None):
        self.urls.append(url)
        if self.gate is not None:
            self.gate.wait(5)
        return _FakeResponse(self.content, self.status_code)


def test_classify_reference() -> None:
    assert classify_reference("https://cdn.example.com/a.jpg") == "remote"
    assert classify_reference("data:image/png;base64,AAAA") == "data"
    assert classify_reference(b"\x89PNG") == "bytes"
    assert classify_reference("/uploads/logo.png") == "local"
    assert classify_reference(Image.new("RGB", (1, 1))) == "image"


def test_same_origin_proxy_rewrites_once() -> None:
    proxy = same_origin_proxy("https://app.example.com/")
    rewritten = proxy("https://cdn.example.com/a b.jpg")
    assert rewritten == "https://app.example.com/api/proxy-image?url=https%3A%2F%2Fcdn.example.com%2Fa%20b.jpg"
    assert proxy(rewritten) == rewritten


def test_resolves_bytes_data_uri_and_local_files(tmp_path) -> None:
    payload = _png_bytes()
    path = tmp_path / "photo.png"
    path.write_bytes(payload)
    uri = "data:image/png;base64," + base64.b64encode(payload).decode("ascii")

    resolved = AssetResolver().resolve_all({"primary_photo": payload, "primary_logo": uri, "agent_headshot": str(path)})
    for slot in ("primary_photo", "primary_logo", "agent_headshot"):
        assert resolved[slot] is not None
        assert resolved[slot].image.mode == "RGBA"
        assert resolved[slot].image.size == (8, 6)


def test_asset_root_resolves_site_relative_paths(tmp_path) -> None:
    (tmp_path / "brand").mkdir()
    (tmp_path / "brand" / "logo.png").write_bytes(_png_bytes())
    resolver = AssetResolver(asset_root=tmp_path)
    assert resolver.resolve("/brand/logo.png", "primary_logo") is not None


def test_failures_resolve_to_none(tmp_path) -> None:
    resolver = AssetResolver(session=_FakeSession(status_code=404))
    resolved = resolver.resolve_all(
        {
            "primary_photo": str(tmp_path / "missing.jpg"),
            "primary_logo": b"not an image",
            "secondary_logo": "https://cdn.example.com/gone.png",
            "agent_headshot": "data:image/png;base64,!!!",
        }
    )
    assert resolved == {
        "primary_photo": None,
        "primary_logo": None,
        "secondary_logo": None,
        "agent_headshot": None,
    }


def test_remote_fetch_goes_through_proxy() -> None:
    session = _FakeSession(content=_png_bytes())
    resolver = AssetResolver(proxy=same_origin_proxy("https://app.example.com"), session=session)
    resolved = resolver.resolve("https://cdn.example.com/a.png", "primary_photo")
    assert resolved is not None
    assert session.urls == ["https://app.example.com/api/proxy-image?url=https%3A%2F%2Fcdn.example.com%2Fa.png"]


def test_cache_is_consulted_before_fetching() -> None:
    cached = Image.new("RGB", (5, 5), color="#0000ff")
    session = _FakeSession(status_code=500)
    cache = {"https://cdn.example.com/a.png": cached}
    resolver = AssetResolver(session=session, cache=cache)
    resolved = resolver.resolve("https://cdn.example.com/a.png", "primary_photo")
    assert resolved is not None
    assert session.urls == []
    assert list(cache) == ["https://cdn.example.com/a.png"]


def test_slow_loads_time_out_to_none() -> None:
    gate = threading.Event()
    session = _FakeSession(content=_png_bytes(), gate=gate)
    resolver = AssetResolver(session=session, timeout_s=0.3)
    try:
        resolved = resolver.resolve_all({"primary_photo": "https://cdn.example.com/slow.png", "primary_logo": _png_bytes()})
    finally:
        gate.set()
    assert resolved["primary_photo"] is None
    assert resolved["primary_logo"] is not None


def test_hanging_sources_do_not_starve_other_slots() -> None:
    gate = threading.Event()
    session = _FakeSession(content=_png_bytes(), gate=gate)
    resolver = AssetResolver(session=session, timeout_s=0.5)
    try:
        resolved = resolver.resolve_all(
            {
                "primary_logo": "https://cdn.example.com/slow-1.png",
                "secondary_logo": "https://cdn.example.com/slow-2.png",
                "primary_photo": _png_bytes("#ff0000", (40, 30)),
            }
        )
    finally:
        gate.set()
    assert resolved["primary_logo"] is None
    assert resolved["secondary_logo"] is None
    assert resolved["primary_photo"] is not None
    assert resolved["primary_photo"].image.size == (40, 30)
