"""Asset resolution: image references in, decoded bitmaps (or ``None``) out."""
from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Mapping
from urllib.parse import quote

import requests
from PIL import Image

from listingstamp.decoders.image_decoder import decode_bytes, decode_data_uri, decode_image
from listingstamp.errors import AssetLoadFailure
from listingstamp.log import get_logger
from listingstamp.models import ResolvedImage

_log = get_logger("assets")

REFERENCE_REMOTE = "remote"
REFERENCE_LOCAL = "local"
REFERENCE_DATA = "data"
REFERENCE_BYTES = "bytes"
REFERENCE_IMAGE = "image"

PROXY_PATH = "/api/proxy-image"
MAX_DOWNLOAD_BYTES = 40 * 1024 * 1024
_USER_AGENT = "listingstamp/0.3"

ProxyStrategy = Callable[[str], str]


def no_proxy(url: str) -> str:
    return url


def same_origin_proxy(base_url: str, path: str = PROXY_PATH) -> ProxyStrategy:
    """Route remote URLs through ``<base_url><path>?url=<quoted url>``."""
    prefix = f"{base_url.rstrip('/')}{path}"

    def _proxy(url: str) -> str:
        if f"{path}?url=" in url:
            return url
        return f"{prefix}?url={quote(url, safe='')}"

    return _proxy


def classify_reference(reference: Any) -> str:
    if isinstance(reference, Image.Image):
        return REFERENCE_IMAGE
    if isinstance(reference, (bytes, bytearray, memoryview)):
        return REFERENCE_BYTES
    if isinstance(reference, Path):
        return REFERENCE_LOCAL
    text = str(reference).strip()
    lowered = text.lower()
    if lowered.startswith("data:"):
        return REFERENCE_DATA
    if lowered.startswith(("http://", "https://", "//")):
        return REFERENCE_REMOTE
    return REFERENCE_LOCAL


def describe_reference(reference: Any) -> str:
    kind = classify_reference(reference)
    if kind == REFERENCE_BYTES:
        return f"<{len(reference)} bytes>"
    if kind == REFERENCE_IMAGE:
        return f"<image {reference.width}x{reference.height}>"
    if kind == REFERENCE_DATA:
        return str(reference)[:48] + "..."
    return str(reference)


class AssetResolver:
    """Turns image references into :class:`ResolvedImage` objects.

    Individual failures never raise: a reference that cannot be fetched,
    decoded or that does not settle within ``timeout_s`` resolves to ``None``.
    ``cache`` is a caller-owned mapping of reference string to bitmap; it is
    only ever read.
    """

    def __init__(
        self,
        *,
        proxy: ProxyStrategy | None = None,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
        cache: Mapping[str, Image.Image] | None = None,
        asset_root: Path | None = None,
    ) -> None:
        self.proxy = proxy or no_proxy
        self.timeout_s = max(0.01, float(timeout_s))
        self.session = session or requests.Session()
        self.cache = cache
        self.asset_root = Path(asset_root) if asset_root else None

    def resolve(self, reference: Any, slot: str = "") -> ResolvedImage | None:
        return self.resolve_all({slot: reference}).get(slot)

    def resolve_all(self, bindings: Mapping[str, Any]) -> dict[str, ResolvedImage | None]:
        """Resolve every binding concurrently and wait for all of them to settle.

        Loads still running after ``timeout_s`` are abandoned (left to finish in
        the background) and their slots resolve to ``None``.
        """
        results: dict[str, ResolvedImage | None] = {slot: None for slot in bindings}
        pending = {slot: ref for slot, ref in bindings.items() if ref is not None and ref != ""}
        if not pending:
            return results

        # One worker per slot: a hung source must not keep another load from starting.
        executor = ThreadPoolExecutor(
            max_workers=len(pending),
            thread_name_prefix="listingstamp-asset",
        )
        try:
            futures: dict[Future, str] = {
                executor.submit(self._resolve_now, ref, slot): slot for slot, ref in pending.items()
            }
            done, not_done = wait(futures, timeout=self.timeout_s)
            for future in done:
                results[futures[future]] = future.result()
            for future in not_done:
                slot = futures[future]
                future.cancel()
                _log.warning(
                    "asset timed out after %.1fs slot=%s ref=%s",
                    self.timeout_s,
                    slot,
                    describe_reference(pending[slot]),
                )
        finally:
            executor.shutdown(wait=False)
        return results

    def _resolve_now(self, reference: Any, slot: str) -> ResolvedImage | None:
        started = time.perf_counter()
        label = describe_reference(reference)
        try:
            image = self._load(reference)
        except Exception as exc:
            failure = AssetLoadFailure(label, str(exc) or type(exc).__name__)
            _log.warning("asset load failed slot=%s %s", slot or "-", failure)
            return None
        _log.debug(
            "asset resolved slot=%s ref=%s size=%sx%s (%.2fs)",
            slot or "-",
            label,
            image.width,
            image.height,
            time.perf_counter() - started,
        )
        return ResolvedImage(slot=slot, image=image, reference=label)

    def _load(self, reference: Any) -> Image.Image:
        kind = classify_reference(reference)
        if kind == REFERENCE_IMAGE:
            return reference.convert("RGBA")
        if kind == REFERENCE_BYTES:
            return decode_bytes(bytes(reference))
        text = str(reference).strip()
        if self.cache is not None:
            cached = self.cache.get(text)
            if cached is not None:
                return cached.convert("RGBA")
        if kind == REFERENCE_DATA:
            return decode_data_uri(text)
        if kind == REFERENCE_REMOTE:
            return decode_bytes(self._fetch_remote(text))
        return decode_image(self._local_path(reference))

    def _local_path(self, reference: Any) -> Path:
        path = Path(reference).expanduser()
        if path.is_file():
            return path
        text = str(reference)
        if self.asset_root is not None and text.startswith("/"):
            candidate = self.asset_root / text.lstrip("/")
            if candidate.is_file():
                return candidate
        if self.asset_root is not None and not path.is_absolute():
            candidate = self.asset_root / path
            if candidate.is_file():
                return candidate
        raise FileNotFoundError(f"no such image: {reference}")

    def _fetch_remote(self, url: str) -> bytes:
        if url.startswith("//"):
            url = f"https:{url}"
        target = self.proxy(url)
        response = self.session.get(
            target,
            timeout=self.timeout_s,
            headers={"User-Agent": _USER_AGENT},
        )
        try:
            response.raise_for_status()
            content = response.content
        finally:
            response.close()
        if len(content) > MAX_DOWNLOAD_BYTES:
            raise RuntimeError(f"image larger than {MAX_DOWNLOAD_BYTES} bytes")
        return content
