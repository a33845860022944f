"""
Threaded preview runner.

Renders filter previews in a QRunnable from a serialized pipeline snapshot,
so slider drags never block the UI thread. Requests are debounced on the
trailing edge and stale results are dropped by generation number.
"""

import logging
from typing import Any, Dict, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal

from ..core import Raster
from ..processing import FilterPipeline, render_snapshot
from .settings import Settings

logger = logging.getLogger(__name__)


class PreviewSignals(QObject):
    """Signals emitted by PreviewRunner."""
    finished = Signal(object, int)  # (Raster, generation)
    failed = Signal(str, int)  # (error message, generation)


class PreviewRunner(QRunnable):
    """Runnable that composites one preview frame."""

    def __init__(self, raster: Raster, state: Dict[str, Any], generation: int):
        super().__init__()
        # Copies only: the worker never sees the live pipeline or buffer
        self.raster = raster.copy()
        self.state = state
        self.generation = generation
        self.signals = PreviewSignals()

    def run(self) -> None:
        """Composite the snapshot and report through signals."""
        try:
            result = render_snapshot(self.raster, self.state)
        except Exception as e:
            logger.exception("Preview generation %d failed", self.generation)
            self.signals.failed.emit(str(e), self.generation)
            return
        self.signals.finished.emit(result, self.generation)


class PreviewManager(QObject):
    """Debounces preview requests and hands them to a thread pool."""

    preview_ready = Signal(object)  # Raster
    preview_failed = Signal(str)

    def __init__(
        self,
        pipeline: FilterPipeline,
        debounce_ms: int = 33,
        thread_pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.pipeline = pipeline
        self.thread_pool = thread_pool if thread_pool is not None else QThreadPool()
        self.generation = 0
        self._pending: Optional[Raster] = None
        self._runners: Dict[int, PreviewRunner] = {}

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(debounce_ms)))
        self._timer.timeout.connect(self._dispatch)

    @classmethod
    def from_settings(
        cls,
        pipeline: FilterPipeline,
        settings: Optional[Settings] = None,
        thread_pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> "PreviewManager":
        """Manager using the debounce interval stored in settings.ini."""
        settings = settings if settings is not None else Settings()
        return cls(pipeline, settings.get_debounce_ms(), thread_pool, parent)

    @property
    def debounce_ms(self) -> int:
        """Current debounce interval."""
        return self._timer.interval()

    def is_pending(self) -> bool:
        """True while a request is waiting for the debounce timer."""
        return self._timer.isActive()

    def request_preview(self, raster: Raster) -> int:
        """
        Schedule a preview of ``raster`` with the pipeline's current state.

        Restarts the debounce timer; only the last request in a burst is
        rendered. The pixels are copied, so the caller may keep drawing
        into its buffer. Returns the request's generation number.
        """
        self.generation += 1
        self._pending = raster.copy()
        self._timer.start()
        return self.generation

    def cancel(self) -> None:
        """Drop any pending request and ignore results already in flight."""
        self._timer.stop()
        self._pending = None
        self.generation += 1

    def _dispatch(self) -> None:
        if self._pending is None:
            return
        runner = PreviewRunner(self._pending, self.pipeline.to_dict(), self.generation)
        self._pending = None
        runner.signals.finished.connect(self._on_finished)
        runner.signals.failed.connect(self._on_failed)
        # Keep a reference until the runner reports back
        self._runners[runner.generation] = runner
        logger.debug("Dispatching preview generation %d", runner.generation)
        self.thread_pool.start(runner)

    def _on_finished(self, result: Raster, generation: int) -> None:
        """Forward a result unless a newer request superseded it."""
        self._runners.pop(generation, None)
        if generation != self.generation:
            logger.debug("Dropping stale preview generation %d (current %d)", generation, self.generation)
            return
        self.preview_ready.emit(result)

    def _on_failed(self, message: str, generation: int) -> None:
        self._runners.pop(generation, None)
        if generation == self.generation:
            self.preview_failed.emit(message)
