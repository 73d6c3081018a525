import threading

from PIL import Image

from listingstamp.models import ListingFields, RenderRequest, RenderResult
from listingstamp.pipeline import RenderPipeline
from listingstamp.preview import PreviewScheduler


class _RecordingPipeline:
    def __init__(self, block_first: threading.Event | None = None) -> None:
        self.calls: list[tuple[RenderRequest, float]] = []
        self.started = threading.Event()
        self.block_first = block_first
        self._lock = threading.Lock()

    def preview(self, request: RenderRequest, preview_scale: float) -> RenderResult:
        with self._lock:
            self.calls.append((request, preview_scale))
            first = len(self.calls) == 1
        self.started.set()
        if first and self.block_first is not None:
            self.block_first.wait(5)
        return RenderResult(
            data=b"",
            width=int(round(request.resolution * preview_scale)),
            height=1,
            format="png",
            template_id=request.template_id,
            generation=request.generation,
        )


def _request(price: int) -> RenderRequest:
    return RenderRequest(template_id="navy_header", fields=ListingFields(address="1 A St", price=price))


def test_rapid_edits_render_once_with_latest_values() -> None:
    pipeline = _RecordingPipeline()
    published: list[tuple[int, RenderResult | None]] = []
    scheduler = PreviewScheduler(
        pipeline,
        debounce_ms=80,
        preview_scale=0.5,
        on_result=lambda generation, result: published.append((generation, result)),
    )
    for price in range(100, 105):
        last_generation = scheduler.submit(_request(price))
    assert scheduler.wait_idle(5)
    assert len(pipeline.calls) == 1
    request, scale = pipeline.calls[0]
    assert request.fields.price == 104
    assert scale == 0.5
    assert [generation for generation, _ in published] == [last_generation]
    assert scheduler.latest_generation == last_generation
    assert scheduler.published_generation == last_generation
    assert published[0][1].width == 540
    scheduler.close()


def test_stale_render_is_discarded() -> None:
    release = threading.Event()
    pipeline = _RecordingPipeline(block_first=release)
    published: list[int] = []
    scheduler = PreviewScheduler(
        pipeline,
        debounce_ms=0,
        on_result=lambda generation, result: published.append(generation),
    )
    scheduler.submit(_request(1))
    assert pipeline.started.wait(5)
    second = scheduler.submit(_request(2))
    try:
        # wait for the second render to finish while the first is still blocked
        for _ in range(500):
            if published:
                break
            threading.Event().wait(0.01)
    finally:
        release.set()
    assert scheduler.wait_idle(5)
    assert published == [second]
    assert scheduler.latest_result.generation == second
    scheduler.close()


def test_cancel_drops_pending_request() -> None:
    pipeline = _RecordingPipeline()
    scheduler = PreviewScheduler(pipeline, debounce_ms=200)
    scheduler.submit(_request(1))
    scheduler.cancel()
    assert scheduler.wait_idle(1)
    assert pipeline.calls == []
    scheduler.close()


def test_missing_mandatory_photo_publishes_none() -> None:
    published: list[tuple[int, RenderResult | None]] = []
    done = threading.Event()

    def _on_result(generation: int, result: RenderResult | None) -> None:
        published.append((generation, result))
        done.set()

    scheduler = PreviewScheduler(RenderPipeline(), debounce_ms=10, on_result=_on_result)
    request = RenderRequest(
        template_id="duo_split",
        fields=ListingFields(address="1 A St"),
        images={"primary_photo": Image.new("RGB", (40, 50), color="#ff0000")},
        resolution=200,
    )
    generation = scheduler.submit(request)
    assert done.wait(10)
    assert published == [(generation, None)]
    scheduler.close()
