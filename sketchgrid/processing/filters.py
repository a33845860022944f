"""
Filter definitions for the processing pipeline.

Each filter is a plain configuration record: a kind tag, an active flag and
a set of typed parameters. The pixel work for every kind lives in
``ProcessingExecutor``; a filter only knows how to hand itself over.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from ..core import FilterKind, Raster


class ParameterType(Enum):
    """Type of filter parameter."""
    FLOAT = auto()
    INT = auto()
    BOOL = auto()


@dataclass
class FilterParameter:
    """A single parameter for a filter."""
    name: str
    param_type: ParameterType
    value: Any
    default: Any = None
    min_val: Optional[float] = None
    max_val: Optional[float] = None
    description: str = ""

    def __post_init__(self):
        if self.default is None:
            self.default = self.value

    def validate(self) -> tuple[bool, str]:
        """Validate parameter value. Returns (is_valid, error_message)."""

        if self.param_type == ParameterType.BOOL:
            if not isinstance(self.value, bool):
                return False, f"{self.name} must be a boolean"
            return True, ""

        if self.param_type == ParameterType.INT:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, np.integer)):
                return False, f"{self.name} must be an integer"
        elif self.param_type == ParameterType.FLOAT:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, np.number)):
                return False, f"{self.name} must be a number"

        if self.min_val is not None and self.value < self.min_val:
            return False, f"{self.name} must be >= {self.min_val:g}"
        if self.max_val is not None and self.value > self.max_val:
            return False, f"{self.name} must be <= {self.max_val:g}"

        return True, ""

    def reset(self) -> None:
        """Restore the default value."""
        self.value = self.default


@dataclass
class EdgeCache:
    """Gradient magnitude computed from one source raster."""
    source_key: Tuple[int, int]  # (width, height) of the source it was computed from
    magnitude: np.ndarray  # float32 (H, W), zero on the 1-pixel border


FilterFingerprint = Tuple[bool, Tuple[Tuple[str, Any], ...]]


@dataclass
class ProcessingFilter:
    """
    One filter in the pipeline.

    ``relevant`` is the allow-list of parameters that feed the pipeline
    fingerprint. ``inert`` maps parameters to the value at which they have
    no visible effect; an empty map means the filter is effective whenever
    it is active.
    """
    name: str
    kind: FilterKind
    label: str
    active: bool = False
    parameters: Dict[str, FilterParameter] = field(default_factory=dict)
    relevant: Tuple[str, ...] = ()
    inert: Dict[str, Any] = field(default_factory=dict)

    # Transient state, never part of the fingerprint
    edge_cache: Optional[EdgeCache] = field(default=None, repr=False, compare=False)
    shape_original: Optional[Raster] = field(default=None, repr=False, compare=False)

    def apply(self, raster: Raster, original: Optional[Raster] = None) -> Raster:
        """
        Apply this filter to ``raster`` in place and return it.

        An inactive filter returns the raster untouched. ``original`` is the
        unfiltered source; only the edge filter consumes it.
        """
        if not self.active:
            return raster
        from .executor import ProcessingExecutor
        return ProcessingExecutor.apply_filter(self, raster, original)

    def get_parameter(self, name: str) -> Optional[FilterParameter]:
        """Get a parameter by name."""
        return self.parameters.get(name)

    def get_property(self, name: str) -> Any:
        """Current value of a parameter, or None when the filter has no such parameter."""
        param = self.parameters.get(name)
        return param.value if param is not None else None

    def set_property(self, name: str, value: Any) -> bool:
        """
        Set a parameter value. Returns whether the value was accepted.

        An invalid value is rejected and the previous value kept. Unknown
        names are ignored (returns False) so shared UI wiring can address
        parameters a given filter does not have.
        """
        param = self.parameters.get(name)
        if param is None:
            return False
        previous, param.value = param.value, value
        is_valid, _ = param.validate()
        if not is_valid:
            param.value = previous
        return is_valid

    def validate_parameters(self) -> tuple[bool, List[str]]:
        """Validate all parameters. Returns (is_valid, list_of_errors)."""
        errors = []
        for param in self.parameters.values():
            is_valid, error_msg = param.validate()
            if not is_valid:
                errors.append(error_msg)
        return len(errors) == 0, errors

    def reset(self) -> None:
        """Restore defaults, deactivate and drop transient caches."""
        for param in self.parameters.values():
            param.reset()
        self.active = False
        self.clear_cache()

    def clear_cache(self) -> None:
        """Drop transient per-filter results."""
        self.edge_cache = None
        self.shape_original = None

    def has_changed(self) -> bool:
        """True when active and at least one parameter is away from its inert value."""
        if not self.active:
            return False
        if not self.inert:
            return True
        return any(self.get_property(key) != value for key, value in self.inert.items())

    def fingerprint(self) -> FilterFingerprint:
        """Snapshot of the active flag and allow-listed parameter values."""
        return self.active, tuple((key, self.get_property(key)) for key in self.relevant)

    def config(self) -> Dict[str, Any]:
        """Plain snapshot of the active flag and every parameter value."""
        return {
            "active": self.active,
            "properties": {key: param.value for key, param in self.parameters.items()},
        }

    def clone(self) -> "ProcessingFilter":
        """Create a copy of this filter with the same parameters and no cached results."""
        from copy import deepcopy
        copied = deepcopy(self)
        copied.clear_cache()
        return copied


# ============================================================================
# FILTER DEFINITIONS
# ============================================================================

def _percent(name: str, value: float, low: float, high: float, description: str) -> FilterParameter:
    return FilterParameter(
        name=name,
        param_type=ParameterType.FLOAT,
        value=value,
        min_val=low,
        max_val=high,
        description=description,
    )


def light_filter() -> ProcessingFilter:
    """Tonal adjustment: exposure, contrast, highlights, shadows."""
    return ProcessingFilter(
        name="light",
        kind=FilterKind.LIGHT,
        label="Light",
        parameters={
            "exposure": _percent("Exposure", 0, -100, 100, "Multiplicative exposure in percent"),
            "contrast": _percent("Contrast", 0, -100, 100, "Contrast around the pixel mean"),
            "highlights": _percent("Highlights", 0, -100, 100, "Gain applied to bright tones"),
            "shadows": _percent("Shadows", 0, -100, 100, "Gain applied to dark tones"),
        },
        relevant=("exposure", "contrast", "highlights", "shadows"),
        inert={"exposure": 0, "contrast": 0, "highlights": 0, "shadows": 0},
    )


def hue_saturation_filter() -> ProcessingFilter:
    """Saturation and white-balance temperature."""
    return ProcessingFilter(
        name="hue_saturation",
        kind=FilterKind.HUE_SATURATION,
        label="Hue/Saturation",
        parameters={
            "saturation": _percent("Saturation", 0, -100, 100, "-100 is fully desaturated"),
            "temperature": _percent("Temperature", 0, -100, 100, "Positive warms, negative cools"),
        },
        relevant=("saturation", "temperature"),
        inert={"saturation": 0, "temperature": 0},
    )


def shape_filter() -> ProcessingFilter:
    """Notan banding: flatten luminance into a few grey levels."""
    return ProcessingFilter(
        name="shape",
        kind=FilterKind.SHAPE,
        label="Shape",
        parameters={
            "notan_bands": FilterParameter(
                name="Notan Bands",
                param_type=ParameterType.INT,
                value=3,
                min_val=1,
                max_val=16,
                description="Number of flat tonal levels",
            ),
            "shape_opacity": _percent("Shape Opacity", 100, 0, 100, "Blend of banded result over the input"),
        },
        relevant=("notan_bands", "shape_opacity"),
        inert={"shape_opacity": 0},
    )


def edge_filter() -> ProcessingFilter:
    """Sobel edge detection over the unfiltered source."""
    return ProcessingFilter(
        name="edge",
        kind=FilterKind.EDGE,
        label="Edges",
        parameters={
            "threshold": _percent("Threshold", 50, 0, 100, "Minimum gradient counted as an edge"),
            "intensity": _percent("Intensity", 50, 0, 100, "Darkness of detected edges"),
            "opacity": _percent("Opacity", 100, 0, 100, "Retained for UI state; does not affect output"),
            "multiply_mode": FilterParameter(
                name="Multiply Mode",
                param_type=ParameterType.BOOL,
                value=False,
                description="Darken the filtered image instead of replacing it",
            ),
        },
        relevant=("threshold", "intensity", "multiply_mode"),
    )


def blur_filter() -> ProcessingFilter:
    """Separable box blur."""
    return ProcessingFilter(
        name="blur",
        kind=FilterKind.BLUR,
        label="Blur",
        parameters={
            "blur_radius": _percent("Blur Radius", 0, 0, 100, "Every 5 units widen the box by one pixel"),
        },
        relevant=("blur_radius",),
        inert={"blur_radius": 0},
    )


# Registry of all available filters, in pipeline order
FILTER_REGISTRY: Dict[str, Callable[[], ProcessingFilter]] = {
    "light": light_filter,
    "hue_saturation": hue_saturation_filter,
    "shape": shape_filter,
    "blur": blur_filter,
    "edge": edge_filter,
}


def create_filter(name: str) -> Optional[ProcessingFilter]:
    """Create a filter instance by name. Returns None if filter not found."""
    if name not in FILTER_REGISTRY:
        return None
    return FILTER_REGISTRY[name]()
