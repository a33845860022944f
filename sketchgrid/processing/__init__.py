"""
Processing system for SketchGrid.

Provides the drawing-reference filters (light, hue/saturation, notan shape,
edges, blur) and the caching pipeline that composites them over an RGBA
raster. Filters are stored as configurations and applied in a fixed order
via ``ProcessingExecutor``.
"""

from .filters import (
    ProcessingFilter,
    FilterParameter,
    ParameterType,
    EdgeCache,
    light_filter,
    hue_saturation_filter,
    shape_filter,
    edge_filter,
    blur_filter,
)
from .executor import ProcessingExecutor
from .filters import (
    create_filter,
    FILTER_REGISTRY,
)
from .pipeline import (
    FilterPipeline,
    CacheEntry,
    CompositeStats,
    render_snapshot,
)

__all__ = [
    "FilterPipeline",
    "CacheEntry",
    "CompositeStats",
    "render_snapshot",
    "ProcessingFilter",
    "FilterParameter",
    "ParameterType",
    "EdgeCache",
    "ProcessingExecutor",
    # Helpers
    "create_filter",
    "FILTER_REGISTRY",
    # Filters
    "light_filter",
    "hue_saturation_filter",
    "shape_filter",
    "edge_filter",
    "blur_filter",
]
