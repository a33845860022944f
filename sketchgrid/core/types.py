"""
Core data types for SketchGrid.

All types use @dataclass and Enum for structured representations.
No loose dicts at the internal API boundary.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Tuple

import numpy as np

# Bytes per pixel (interleaved R, G, B, A)
CHANNELS = 4


class FilterKind(Enum):
    """The closed set of filter variants the pipeline knows how to apply."""
    LIGHT = auto()
    HUE_SATURATION = auto()
    SHAPE = auto()
    EDGE = auto()
    BLUR = auto()


class ValidationSeverity(Enum):
    """Validation issue severity."""
    ERROR = auto()
    WARNING = auto()


@dataclass
class Raster:
    """
    A width x height RGBA buffer of 8-bit samples, row-major.

    ``data`` is a ``uint8`` array of shape ``(height, width, 4)``; its flat
    byte layout is exactly the interleaved RGBA buffer of a canvas image.
    """
    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Raster dimensions must be non-negative, got {self.width}x{self.height}")
        if not isinstance(self.data, np.ndarray) or self.data.dtype != np.uint8:
            raise ValueError("Raster data must be a uint8 numpy array")
        if self.data.size != self.width * self.height * CHANNELS:
            raise ValueError(
                f"Raster buffer holds {self.data.size} samples, "
                f"expected {self.width * self.height * CHANNELS} for {self.width}x{self.height}"
            )
        if self.data.shape != (self.height, self.width, CHANNELS):
            self.data = self.data.reshape((self.height, self.width, CHANNELS))

    @classmethod
    def blank(cls, width: int, height: int, color: Tuple[int, int, int, int] = (0, 0, 0, 0)) -> "Raster":
        """Create a raster filled with a single RGBA color."""
        data = np.empty((height, width, CHANNELS), dtype=np.uint8)
        data[...] = np.asarray(color, dtype=np.uint8)
        return cls(width, height, data)

    @classmethod
    def from_bytes(cls, width: int, height: int, buffer: Any) -> "Raster":
        """Wrap a copy of a flat RGBA byte buffer (bytes, bytearray, list, array)."""
        data = np.array(buffer, dtype=np.uint8).reshape(-1)
        return cls(width, height, data)

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) tuple."""
        return self.width, self.height

    def copy(self) -> "Raster":
        """Deep copy of the pixel buffer."""
        return Raster(self.width, self.height, self.data.copy())

    def to_bytes(self) -> bytes:
        """Flat interleaved RGBA bytes."""
        return self.data.tobytes()

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA tuple at (x, y)."""
        r, g, b, a = self.data[y, x]
        return int(r), int(g), int(b), int(a)

    def same_pixels(self, other: "Raster") -> bool:
        """True if both rasters have the same size and identical bytes."""
        return self.size == other.size and np.array_equal(self.data, other.data)


@dataclass
class ValidationIssue:
    """A validation problem."""
    severity: ValidationSeverity
    code: str
    message: str
    context: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.severity.name}] {self.code}: {self.message}"
