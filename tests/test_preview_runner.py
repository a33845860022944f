import os

import pytest

pytest.importorskip("PySide6.QtCore", reason="PySide6 is required for preview runner tests", exc_type=ImportError)

from PySide6.QtCore import QCoreApplication, QEventLoop, QThreadPool, QTimer

from sketchgrid.processing import FilterPipeline
from sketchgrid.services import PreviewManager, ProjectState, Settings
from sketchgrid.services.preview_runner import PreviewRunner

from conftest import noisy_raster


@pytest.fixture(scope="module")
def qapp() -> QCoreApplication:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


def wait_for(signal, timeout_ms: int = 5000) -> None:
    loop = QEventLoop()
    signal.connect(loop.quit)
    timer = QTimer(loop)
    timer.setSingleShot(True)
    timer.timeout.connect(loop.quit)
    timer.start(timeout_ms)
    loop.exec()


@pytest.fixture
def configured_pipeline() -> FilterPipeline:
    pipeline = FilterPipeline.with_default_filters()
    pipeline.update_filter_state("hue_saturation", True, {"saturation": -60, "temperature": 30})
    pipeline.update_filter_state("shape", True, {"notan_bands": 4, "shape_opacity": 70})
    pipeline.update_filter_state("edge", True, {"multiply_mode": True})
    return pipeline


def test_runner_renders_snapshot(qapp, configured_pipeline):
    photo = noisy_raster()
    runner = PreviewRunner(photo, configured_pipeline.to_dict(), generation=7)
    results = []
    runner.signals.finished.connect(lambda raster, generation: results.append((raster, generation)))

    runner.run()

    assert len(results) == 1
    raster, generation = results[0]
    assert generation == 7
    assert raster.same_pixels(configured_pipeline.composite(photo))


def test_runner_works_on_a_copy(qapp, configured_pipeline):
    photo = noisy_raster()
    runner = PreviewRunner(photo, configured_pipeline.to_dict(), generation=1)
    photo.data[...] = 0

    results = []
    runner.signals.finished.connect(lambda raster, generation: results.append(raster))
    runner.run()

    assert results[0].data.any()


def test_runner_reports_failures(qapp, monkeypatch):
    def broken_render(raster, state):
        raise RuntimeError("render failed")

    monkeypatch.setattr("sketchgrid.services.preview_runner.render_snapshot", broken_render)
    runner = PreviewRunner(noisy_raster(), FilterPipeline.with_default_filters().to_dict(), generation=3)
    failures = []
    runner.signals.failed.connect(lambda message, generation: failures.append((message, generation)))

    runner.run()

    assert failures == [("render failed", 3)]


def test_requests_are_debounced(qapp, configured_pipeline):
    manager = PreviewManager(configured_pipeline, debounce_ms=10, thread_pool=QThreadPool())
    received = []
    manager.preview_ready.connect(received.append)

    first = noisy_raster(seed=1)
    last = noisy_raster(seed=2)
    manager.request_preview(first)
    manager.request_preview(last)
    assert manager.generation == 2
    assert manager.is_pending()

    wait_for(manager.preview_ready)
    manager.thread_pool.waitForDone()
    qapp.processEvents()

    assert len(received) == 1
    assert received[0].same_pixels(configured_pipeline.composite(last))


def test_stale_results_are_dropped(qapp, configured_pipeline):
    manager = PreviewManager(configured_pipeline, debounce_ms=10)
    received = []
    manager.preview_ready.connect(received.append)

    manager.request_preview(noisy_raster())
    manager.request_preview(noisy_raster())
    manager._on_finished(noisy_raster(), 1)
    assert received == []

    manager._on_finished(noisy_raster(), 2)
    assert len(received) == 1
    manager.cancel()


def test_cancel_drops_pending_request(qapp, configured_pipeline):
    manager = PreviewManager(configured_pipeline, debounce_ms=10)
    manager.request_preview(noisy_raster())
    manager.cancel()

    assert not manager.is_pending()
    assert manager.generation == 2
    assert manager.debounce_ms == 10


def test_request_copies_the_callers_buffer(qapp, configured_pipeline):
    manager = PreviewManager(configured_pipeline, debounce_ms=10, thread_pool=QThreadPool())
    received = []
    manager.preview_ready.connect(received.append)

    buffer = noisy_raster(seed=4)
    expected = configured_pipeline.composite(buffer)
    manager.request_preview(buffer)
    buffer.data[...] = 0

    wait_for(manager.preview_ready)
    manager.thread_pool.waitForDone()
    qapp.processEvents()

    assert len(received) == 1
    assert received[0].same_pixels(expected)


def test_manager_uses_configured_debounce(qapp, tmp_path, configured_pipeline):
    settings = Settings(tmp_path / "settings.ini")
    settings.set_debounce_ms(50)

    manager = PreviewManager.from_settings(configured_pipeline, settings)

    assert manager.debounce_ms == 50
    assert manager.pipeline is configured_pipeline


def test_project_state_creates_preview_manager(qapp, tmp_path):
    settings = Settings(tmp_path / "settings.ini")
    settings.set_debounce_ms(120)
    state = ProjectState()

    manager = state.create_preview_manager(settings)

    assert isinstance(manager, PreviewManager)
    assert manager.pipeline is state.pipeline
    assert manager.debounce_ms == 120
