"""Debounced live-preview rendering with last-request-wins publication."""
from __future__ import annotations

import threading
from typing import Callable

from listingstamp.log import get_logger
from listingstamp.models import RenderRequest, RenderResult
from listingstamp.pipeline import RenderPipeline

_log = get_logger("preview")

ResultCallback = Callable[[int, RenderResult | None], None]
ErrorCallback = Callable[[int, BaseException], None]


class PreviewScheduler:
    """Coalesces bursts of edits into one preview render.

    Every :meth:`submit` bumps a generation counter and restarts the debounce
    timer. When the timer fires, the request is rendered at
    ``round(resolution * preview_scale)``. A finished render is published via
    ``on_result`` only if no newer request was submitted in the meantime;
    otherwise it is dropped. ``on_result`` receives ``None`` when the template's
    mandatory photos could not be resolved.
    """

    def __init__(
        self,
        pipeline: RenderPipeline,
        *,
        debounce_ms: int = 350,
        preview_scale: float = 0.5,
        on_result: ResultCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.debounce_s = max(0, int(debounce_ms)) / 1000.0
        self.preview_scale = float(preview_scale)
        self.on_result = on_result
        self.on_error = on_error

        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._in_flight = 0
        self._closed = False
        self._latest: RenderResult | None = None
        self._published_generation = 0

    @property
    def latest_generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def latest_result(self) -> RenderResult | None:
        with self._lock:
            return self._latest

    @property
    def published_generation(self) -> int:
        with self._lock:
            return self._published_generation

    def submit(self, request: RenderRequest) -> int:
        """Queue ``request`` for preview and return its generation."""
        with self._lock:
            if self._closed:
                raise RuntimeError("preview scheduler is closed")
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.debounce_s, self._fire, args=(request.with_generation(generation),))
            timer.daemon = True
            self._timer = timer
            self._idle.clear()
        timer.start()
        return generation

    def cancel(self) -> None:
        """Drop the pending request and invalidate any render in flight."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._update_idle()

    def close(self) -> None:
        self.cancel()
        with self._lock:
            self._closed = True

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until nothing is pending or rendering; False on timeout."""
        return self._idle.wait(timeout)

    def _update_idle(self) -> None:
        if self._timer is None and self._in_flight == 0:
            self._idle.set()

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self._closed

    def _fire(self, request: RenderRequest) -> None:
        generation = request.generation
        with self._lock:
            if not self._is_current(generation):
                _log.debug("preview gen=%s superseded before render", generation)
                return
            self._timer = None
            self._in_flight += 1

        result: RenderResult | None = None
        error: BaseException | None = None
        try:
            result = self.pipeline.preview(request, self.preview_scale)
        except Exception as exc:
            error = exc

        with self._lock:
            self._in_flight -= 1
            current = self._is_current(generation)
            if current and error is None:
                self._latest = result
                self._published_generation = generation

        try:
            if not current:
                _log.debug("preview gen=%s discarded, newer request pending", generation)
            elif error is not None:
                _log.error("preview gen=%s failed: %s", generation, error)
                if self.on_error is not None:
                    self.on_error(generation, error)
            elif self.on_result is not None:
                self.on_result(generation, result)
        finally:
            with self._lock:
                self._update_idle()
