import numpy as np
import pytest

pytest.importorskip("OpenImageIO", reason="OpenImageIO is required for image I/O", exc_type=ImportError)

from sketchgrid.core import Raster
from sketchgrid.oiio import OiioAdapter

from conftest import noisy_raster


def test_grey_expands_to_opaque_rgba():
    grey = np.array([[[10], [200]]], dtype=np.uint8)
    rgba = OiioAdapter.to_rgba(grey, 1, 2)
    assert rgba.tolist() == [[[10, 10, 10, 255], [200, 200, 200, 255]]]


def test_grey_alpha_keeps_alpha():
    grey_alpha = np.array([[[10, 0], [200, 128]]], dtype=np.uint8)
    rgba = OiioAdapter.to_rgba(grey_alpha, 1, 2)
    assert rgba.tolist() == [[[10, 10, 10, 0], [200, 200, 200, 128]]]


def test_rgb_gets_opaque_alpha_and_extra_channels_are_dropped():
    rgb = np.array([[[1, 2, 3]]], dtype=np.uint8)
    assert OiioAdapter.to_rgba(rgb, 1, 1).tolist() == [[[1, 2, 3, 255]]]

    five = np.array([[[1, 2, 3, 4, 5]]], dtype=np.uint8)
    assert OiioAdapter.to_rgba(five, 1, 1).tolist() == [[[1, 2, 3, 4]]]


def test_png_write_then_read(tmp_path):
    path = tmp_path / "frame.png"
    raster = noisy_raster(7, 5)

    OiioAdapter.write_raster(str(path), raster)
    loaded = OiioAdapter.read_raster(str(path))

    assert loaded is not None
    assert loaded.size == (7, 5)
    assert loaded.same_pixels(raster)
    assert OiioAdapter.image_size(str(path)) == (7, 5, 4)


def test_read_missing_file_returns_none(tmp_path):
    assert OiioAdapter.read_raster(str(tmp_path / "nope.png")) is None
    assert OiioAdapter.image_size(str(tmp_path / "nope.png")) is None


def test_write_to_missing_directory_raises(tmp_path):
    with pytest.raises(RuntimeError):
        OiioAdapter.write_raster(str(tmp_path / "missing" / "out.png"), Raster.blank(2, 2))


def test_version_string():
    assert OiioAdapter.get_oiio_version()
