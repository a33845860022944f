"""
Validation engine for rendering and export.

Structured validation rules that must pass before a raster is written.
Returns ValidationIssue list; ERROR severity blocks export.
"""

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from .types import CHANNELS, Raster, ValidationIssue, ValidationSeverity

if TYPE_CHECKING:
    from ..processing.pipeline import FilterPipeline

# Extensions the CLI will hand to OpenImageIO for 8-bit RGBA output
SUPPORTED_OUTPUT_EXTENSIONS = (".png", ".tif", ".tiff", ".exr", ".webp", ".bmp", ".jpg", ".jpeg")

# Formats that drop the alpha channel on write
NO_ALPHA_EXTENSIONS = (".jpg", ".jpeg", ".bmp")


class ValidationEngine:
    """Validates rasters, filter pipelines and output paths."""

    @staticmethod
    def validate_raster(raster: Optional[Raster]) -> List[ValidationIssue]:
        """Check that a raster is present, non-empty and well formed."""
        issues = []

        if raster is None:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="NO_SOURCE",
                    message="No source image loaded.",
                )
            )
            return issues

        if raster.width == 0 or raster.height == 0:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="EMPTY_RASTER",
                    message=f"Raster is empty ({raster.width}x{raster.height}).",
                    context={"width": raster.width, "height": raster.height},
                )
            )
            return issues

        if raster.data.shape != (raster.height, raster.width, CHANNELS) or raster.data.dtype != np.uint8:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="BAD_BUFFER",
                    message=f"Raster buffer has shape {raster.data.shape} and dtype {raster.data.dtype}.",
                    context={"shape": raster.data.shape},
                )
            )
            return issues

        if raster.width < 3 or raster.height < 3:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    code="TOO_SMALL_FOR_EDGES",
                    message="Raster is smaller than 3x3; edge detection has no interior pixels.",
                    context={"width": raster.width, "height": raster.height},
                )
            )

        if not raster.data[..., 3].any():
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    code="FULLY_TRANSPARENT",
                    message="Every pixel is fully transparent.",
                )
            )

        return issues

    @staticmethod
    def validate_pipeline(pipeline: "FilterPipeline") -> List[ValidationIssue]:
        """Report out-of-range parameters and filters with no visible effect."""
        issues = []

        if len(pipeline) == 0:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    code="NO_FILTERS",
                    message="Pipeline has no registered filters.",
                )
            )
            return issues

        for filter in pipeline.ordered_filters():
            is_valid, errors = filter.validate_parameters()
            if not is_valid:
                for error in errors:
                    issues.append(
                        ValidationIssue(
                            severity=ValidationSeverity.ERROR,
                            code="INVALID_PARAMETER",
                            message=f"Filter '{filter.name}': {error}",
                            context={"filter": filter.name},
                        )
                    )
            elif filter.active and not filter.has_changed():
                issues.append(
                    ValidationIssue(
                        severity=ValidationSeverity.WARNING,
                        code="FILTER_HAS_NO_EFFECT",
                        message=f"Filter '{filter.name}' is active but all its settings are neutral.",
                        context={"filter": filter.name},
                    )
                )

        return issues

    @staticmethod
    def validate_output_path(path: str) -> List[ValidationIssue]:
        """Validate the target file path of an export."""
        issues = []

        if not path:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="MISSING_OUTPUT_PATH",
                    message="Output path not specified.",
                )
            )
            return issues

        output_path = Path(path)
        suffix = output_path.suffix.lower()
        if suffix not in SUPPORTED_OUTPUT_EXTENSIONS:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="UNSUPPORTED_FORMAT",
                    message=f"Unsupported output format '{suffix or output_path.name}'.",
                    context={"suffix": suffix},
                )
            )
        elif suffix in NO_ALPHA_EXTENSIONS:
            issues.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    code="ALPHA_DROPPED",
                    message=f"'{suffix}' files have no alpha channel; transparency will be lost.",
                    context={"suffix": suffix},
                )
            )

        parent = output_path.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                issues.append(
                    ValidationIssue(
                        severity=ValidationSeverity.ERROR,
                        code="CANNOT_CREATE_OUTPUT_DIR",
                        message=f"Cannot create output directory: {e}",
                        context={"error": str(e)},
                    )
                )

        return issues

    @staticmethod
    def has_errors(issues: List[ValidationIssue]) -> bool:
        """True if any issue blocks export."""
        return any(issue.severity == ValidationSeverity.ERROR for issue in issues)
