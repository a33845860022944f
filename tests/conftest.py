import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]

# Ensure the project sources are importable without installing the package
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sketchgrid.core import Raster
from sketchgrid.processing import FilterPipeline


def gray_ramp(width: int = 256, height: int = 2) -> Raster:
    """Opaque raster whose columns step through grey levels 0..255."""
    values = np.linspace(0, 255, width).round().astype(np.uint8)
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[..., :3] = values[None, :, None]
    data[..., 3] = 255
    return Raster(width, height, data)


def noisy_raster(width: int = 16, height: int = 12, seed: int = 7) -> Raster:
    """Deterministic opaque raster with plenty of gradient."""
    rng = np.random.default_rng(seed)
    data = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    data[..., 3] = 255
    return Raster(width, height, data)


@pytest.fixture
def pipeline() -> FilterPipeline:
    return FilterPipeline.with_default_filters()


@pytest.fixture
def photo() -> Raster:
    return noisy_raster()
