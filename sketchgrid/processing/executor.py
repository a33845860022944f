"""
Processing executor - applies filters to rasters with NumPy.

This module holds the pixel math for every filter kind. Each handler
mutates the raster buffer in place and returns the same raster, so the
compositor can chain handlers over one working buffer.
"""

import logging
import math
from typing import Callable, Dict, Optional

import numpy as np

from ..core import FilterKind, Raster
from .filters import EdgeCache, ProcessingFilter

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

WARM_REFERENCE = np.array([255.0, 200.0, 120.0])
COOL_REFERENCE = np.array([130.0, 175.0, 240.0])

# Sobel kernels (horizontal, vertical gradient)
SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]])
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]])

# blur_radius units per pixel of box radius
BLUR_RADIUS_STEP = 5


def to_u8(values: np.ndarray) -> np.ndarray:
    """Round half to even and clamp into bytes, like a clamped byte buffer."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Weighted luminance in 0..255 over the last axis of an (..., 3) array."""
    return rgb @ LUMA_WEIGHTS


def round_half_up(values) -> np.ndarray:
    """Round .5 away from zero for non-negative input (0.5 -> 1, 2.5 -> 3)."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def notan_thresholds(bands: int) -> np.ndarray:
    """Cut points splitting 0..255 into ``bands`` equal-width bands."""
    return round_half_up(255 * np.arange(1, bands) / bands)


def notan_levels(bands: int) -> np.ndarray:
    """Flat output value for each band, darkest first; the top band is white."""
    return np.append(round_half_up(255 * np.arange(bands - 1) / bands), 255.0)


def saturate(rgb: np.ndarray, saturation: float) -> np.ndarray:
    """Interpolate each channel between luminance grey and itself."""
    factor = 1.0 + saturation * 0.01
    gray = luminance(rgb)[:, None]
    return np.clip(gray * (1.0 - factor) + rgb * factor, 0, 255)


def shift_temperature(rgb: np.ndarray, temperature: float) -> np.ndarray:
    """Blend toward a warm or cool reference color weighted by luminance."""
    lum = luminance(rgb) / 255.0
    strength = min(1.0, abs(temperature) / 120.0)

    if temperature > 0:
        influence = lum * lum * strength
        blend = (0.25 * influence)[:, None]
        shifted = rgb * (1.0 - blend) + WARM_REFERENCE * blend
        gain = np.where(lum > 0.5, 1.0 + 0.1 * influence, 1.0)
    else:
        influence = (1.0 - lum) * strength
        blend = (0.25 * influence)[:, None]
        shifted = rgb * (1.0 - blend) + COOL_REFERENCE * blend
        gain = np.where(lum < 0.5, 1.0 - 0.05 * influence, 1.0)

    return np.clip(shifted * gain[:, None], 0, 255)


def hue_saturation_combined(rgb: np.ndarray, saturation: float, temperature: float) -> np.ndarray:
    """Saturation first, then temperature computed from the saturated channels."""
    return shift_temperature(saturate(rgb, saturation), temperature)


def sobel_magnitude(source: Raster) -> np.ndarray:
    """
    Gradient magnitude of the source's grayscale.

    Returns a float32 (H, W) array; the 1-pixel border stays zero because
    the 3x3 kernels only cover interior pixels.
    """
    magnitude = np.zeros((source.height, source.width), dtype=np.float32)
    if source.width < 3 or source.height < 3:
        return magnitude

    gray = round_half_up(luminance(source.data[..., :3].astype(np.float64)))
    rows, cols = source.height - 2, source.width - 2

    gx = np.zeros((rows, cols))
    gy = np.zeros((rows, cols))
    for ky in range(3):
        for kx in range(3):
            window = gray[ky:ky + rows, kx:kx + cols]
            gx += SOBEL_X[ky, kx] * window
            gy += SOBEL_Y[ky, kx] * window

    magnitude[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)
    return magnitude


def box_pass(values: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """
    Mean over a window of ``2 * radius + 1`` samples along ``axis``.

    Samples past either end clamp to the edge sample.
    """
    length = values.shape[axis]
    window = 2 * radius + 1

    padding = [(0, 0)] * values.ndim
    padding[axis] = (radius, radius)
    padded = np.pad(values.astype(np.float64), padding, mode="edge")

    sums = np.cumsum(padded, axis=axis)
    zero_shape = list(sums.shape)
    zero_shape[axis] = 1
    sums = np.concatenate([np.zeros(zero_shape), sums], axis=axis)

    upper = np.take(sums, np.arange(window, window + length), axis=axis)
    lower = np.take(sums, np.arange(0, length), axis=axis)
    return (upper - lower) / window


class ProcessingExecutor:
    """Dispatches a filter to the handler for its kind."""

    _HANDLERS: Dict[FilterKind, str] = {
        FilterKind.LIGHT: "_apply_light",
        FilterKind.HUE_SATURATION: "_apply_hue_saturation",
        FilterKind.SHAPE: "_apply_shape",
        FilterKind.EDGE: "_apply_edge",
        FilterKind.BLUR: "_apply_blur",
    }

    @classmethod
    def apply_filter(
        cls,
        filter: ProcessingFilter,
        raster: Raster,
        original: Optional[Raster] = None,
    ) -> Raster:
        """
        Apply a single filter to ``raster`` in place.

        Args:
            filter: Filter to apply (its active flag is not checked here)
            raster: Working buffer, mutated in place
            original: Unfiltered source, used by the edge filter

        Returns:
            The same raster object
        """
        handler_name = cls._HANDLERS.get(filter.kind)
        if handler_name is None:
            raise NotImplementedError(f"No transform implemented for filter kind {filter.kind!r} ({filter.name})")
        handler: Callable[..., Raster] = getattr(cls, handler_name)

        if raster.width == 0 or raster.height == 0:
            return raster

        if filter.kind == FilterKind.EDGE:
            return handler(raster, filter, original)
        return handler(raster, filter)

    @staticmethod
    def _apply_light(raster: Raster, filter: ProcessingFilter) -> Raster:
        """Exposure, then contrast, then the shadow/highlight blend."""
        exposure = float(filter.get_property("exposure") or 0)
        contrast = float(filter.get_property("contrast") or 0)
        highlights = float(filter.get_property("highlights") or 0)
        shadows = float(filter.get_property("shadows") or 0)

        if exposure == 0 and contrast == 0 and highlights == 0 and shadows == 0:
            return raster

        data = raster.data
        visible = data[..., 3] != 0
        rgb = data[..., :3][visible].astype(np.float64)

        lum = luminance(rgb) / 255.0

        rgb = np.clip(rgb * (1.0 + exposure / 100.0), 0, 255)

        if contrast != 0:
            mean = rgb.mean(axis=1, keepdims=True)
            rgb = np.clip(mean + (rgb - mean) * (1.0 + contrast / 100.0), 0, 255)

        if shadows != 0 or highlights != 0:
            shadow_weight = np.maximum(0.0, 1.0 - 2.0 * lum) ** 1.5
            highlight_weight = np.maximum(0.0, 2.0 * lum - 1.0) ** 1.5
            blend = (
                1.0
                + shadow_weight * (shadows / 100.0)
                + highlight_weight * (highlights / 100.0)
            )
            rgb = np.clip(rgb * blend[:, None], 0, 255)

        data[..., :3][visible] = to_u8(rgb)
        return raster

    @staticmethod
    def _apply_hue_saturation(raster: Raster, filter: ProcessingFilter) -> Raster:
        """Saturation and temperature, with single-adjustment fast paths."""
        saturation = float(filter.get_property("saturation") or 0)
        temperature = float(filter.get_property("temperature") or 0)

        if saturation == 0 and temperature == 0:
            return raster

        data = raster.data
        visible = data[..., 3] != 0
        rgb = data[..., :3][visible].astype(np.float64)

        if temperature == 0:
            rgb = saturate(rgb, saturation)
        elif saturation == 0:
            rgb = shift_temperature(rgb, temperature)
        else:
            rgb = hue_saturation_combined(rgb, saturation, temperature)

        data[..., :3][visible] = to_u8(rgb)
        return raster

    @staticmethod
    def _apply_shape(raster: Raster, filter: ProcessingFilter) -> Raster:
        """Notan banding blended over the incoming raster."""
        bands = int(filter.get_property("notan_bands") or 0)
        opacity = float(filter.get_property("shape_opacity") or 0) / 100.0

        filter.shape_original = raster.copy()

        data = raster.data
        visible = data[..., 3] != 0
        original = filter.shape_original.data[..., :3][visible].astype(np.float64)

        lum = round_half_up(luminance(original))
        if bands <= 1:
            flat = np.where(lum > 127, 255.0, 0.0)
        else:
            band = np.searchsorted(notan_thresholds(bands), lum, side="right")
            flat = notan_levels(bands)[band]

        blended = flat[:, None] * opacity + original * (1.0 - opacity)
        data[..., :3][visible] = to_u8(blended)
        return raster

    @staticmethod
    def _apply_edge(raster: Raster, filter: ProcessingFilter, original: Optional[Raster] = None) -> Raster:
        """Sobel edges from the original, written over the working buffer."""
        source = original if original is not None else raster
        if source.size != raster.size:
            raise ValueError(f"Edge source is {source.size}, working raster is {raster.size}")

        cache = filter.edge_cache
        if cache is None or cache.source_key != source.size:
            logger.debug("Computing edge gradient for %dx%d source", source.width, source.height)
            cache = EdgeCache(source_key=source.size, magnitude=sobel_magnitude(source))
            filter.edge_cache = cache

        threshold = float(filter.get_property("threshold") or 0) * 2.55
        intensity = float(filter.get_property("intensity") or 0) / 100.0
        multiply = bool(filter.get_property("multiply_mode"))

        magnitude = cache.magnitude.astype(np.float64)
        interior = np.zeros(magnitude.shape, dtype=bool)
        interior[1:-1, 1:-1] = True
        is_edge = interior & (magnitude > threshold)

        data = raster.data
        if multiply:
            factor = np.maximum(0.0, 255.0 - magnitude[is_edge] * intensity) / 255.0
            darkened = data[..., :3][is_edge].astype(np.float64) * factor[:, None]
            data[..., :3][is_edge] = to_u8(darkened)
            data[..., 3][is_edge] = 255
        else:
            value = np.where(is_edge, 255.0 - np.minimum(255.0, magnitude * intensity), 255.0)
            data[..., :3][interior] = to_u8(value[interior])[:, None]
            data[..., 3][interior] = 255

        return raster

    @staticmethod
    def _apply_blur(raster: Raster, filter: ProcessingFilter) -> Raster:
        """Separable box blur; horizontal pass, then vertical."""
        radius = math.floor(float(filter.get_property("blur_radius") or 0) / BLUR_RADIUS_STEP)
        if radius <= 0:
            return raster

        intermediate = to_u8(box_pass(raster.data, radius, axis=1))
        raster.data[...] = to_u8(box_pass(intermediate, radius, axis=0))
        return raster
