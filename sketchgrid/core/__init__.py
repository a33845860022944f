"""Core types and validation for SketchGrid."""
from .types import (
    CHANNELS,
    FilterKind,
    Raster,
    ValidationIssue,
    ValidationSeverity,
)
from .validation import ValidationEngine

__all__ = [
    "CHANNELS",
    "FilterKind",
    "Raster",
    "ValidationIssue",
    "ValidationSeverity",
    "ValidationEngine",
]
