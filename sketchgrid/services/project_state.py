"""
Project state management.

Central in-memory store for one editing session:
- The loaded source raster
- The filter pipeline
- The "show original" view toggle
"""

import logging
from typing import Any, List, Mapping, Optional

from ..core import Raster, ValidationEngine, ValidationSeverity
from ..processing import FilterPipeline
from .preview_runner import PreviewManager
from .settings import Settings

logger = logging.getLogger(__name__)


class ProjectState:
    """Central state management for the application."""

    def __init__(self, pipeline: Optional[FilterPipeline] = None):
        self.pipeline = pipeline if pipeline is not None else FilterPipeline.with_default_filters()
        self.source: Optional[Raster] = None
        self.source_path: Optional[str] = None
        self._showing_original = False

    # ========== Source Management ==========

    def set_source(self, raster: Raster, path: Optional[str] = None) -> None:
        """Replace the source image; cached composites and gradients are dropped."""
        self.source = raster
        self.source_path = path
        self.pipeline.invalidate_source()
        logger.debug("Source set to %s (%dx%d)", path or "<memory>", raster.width, raster.height)

    def clear_source(self) -> None:
        """Forget the source image."""
        self.source = None
        self.source_path = None
        self.pipeline.invalidate_source()

    def has_source(self) -> bool:
        """True once a source image is loaded."""
        return self.source is not None

    # ========== Filter State ==========

    def update_filter(
        self,
        name: str,
        active: bool,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Forward a filter change to the pipeline; leaves "show original" mode."""
        self.reset_to_filtered()
        return self.pipeline.update_filter_state(name, active, properties)

    def create_preview_manager(self, settings: Optional[Settings] = None) -> PreviewManager:
        """Threaded preview manager for this session's pipeline, debounced per settings."""
        return PreviewManager.from_settings(self.pipeline, settings)

    def reset_filters(self) -> None:
        """Deactivate every filter and restore defaults."""
        self.pipeline.reset_all_filters()

    # ========== View Toggle ==========

    @property
    def showing_original(self) -> bool:
        """True while the unfiltered source is displayed."""
        return self._showing_original

    def toggle_original(self) -> bool:
        """Flip between original and filtered view. Returns the new state."""
        self._showing_original = not self._showing_original
        return self._showing_original

    def reset_to_filtered(self) -> None:
        """Return to the filtered view."""
        self._showing_original = False

    # ========== Rendering ==========

    def render_preview(self, buffer: Raster) -> Raster:
        """
        Filter a preview buffer in place and return it.

        ``buffer`` must already hold the source pixels at display size; it
        is left untouched while the original is shown.
        """
        if self._showing_original:
            return buffer
        return self.pipeline.composite_in_place(buffer)

    def render_export(self) -> Raster:
        """Filtered copy of the full-size source. Raises ValueError without one."""
        if self.source is None:
            raise ValueError("No source image loaded")
        return self.pipeline.composite(self.source)

    # ========== Validation Context ==========

    def can_export(self) -> tuple[bool, List[str]]:
        """
        Quick check: can we attempt export?
        Returns (can_export, issues_list).
        For detailed validation, use ValidationEngine.
        """
        issues = ValidationEngine.validate_raster(self.source)
        issues.extend(ValidationEngine.validate_pipeline(self.pipeline))
        errors = [str(issue) for issue in issues if issue.severity == ValidationSeverity.ERROR]
        return len(errors) == 0, errors
