"""
Processing pipeline management.

Owns the filter instances, applies them in a fixed order over a working
copy of the source raster, and keeps the last composite around until a
filter fingerprint or the raster dimensions change.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from ..core import Raster
from .filters import FILTER_REGISTRY, FilterFingerprint, ProcessingFilter, create_filter

logger = logging.getLogger(__name__)

# Composition order; the edge filter always runs last against the original
PIPELINE_ORDER = ("light", "hue_saturation", "shape", "blur")
EDGE_FILTER = "edge"

# A real change to one of these drops the cached composite outright
STRUCTURAL_FILTERS = ("shape", "edge")


@dataclass
class CacheEntry:
    """The last composite and the state it was computed from."""
    width: int
    height: int
    raster: Raster
    fingerprints: Dict[str, FilterFingerprint] = field(default_factory=dict)


@dataclass
class CompositeStats:
    """Counters for how composite requests were served."""
    recomputes: int = 0
    cache_hits: int = 0
    skipped: int = 0


class FilterPipeline:
    """Registry of filters plus the caching compositor."""

    def __init__(self):
        self.filters: Dict[str, ProcessingFilter] = {}
        self.stats = CompositeStats()
        self._cache: Optional[CacheEntry] = None
        self._fingerprints: Dict[str, FilterFingerprint] = {}
        self._needs_update = True
        self._redraw: Optional[Callable[[], None]] = None

    @classmethod
    def with_default_filters(cls) -> "FilterPipeline":
        """Pipeline with one instance of every known filter."""
        pipeline = cls()
        for name in FILTER_REGISTRY:
            pipeline.register_filter(create_filter(name))
        return pipeline

    # ========== Registry ==========

    def register_filter(self, filter: ProcessingFilter) -> None:
        """Add a filter keyed by its name and snapshot its fingerprint."""
        if not callable(getattr(filter, "apply", None)):
            raise TypeError(f"register_filter: {filter!r} does not provide an apply() method")
        name = getattr(filter, "name", None)
        if not isinstance(name, str) or not name:
            raise TypeError(f"register_filter: {filter!r} has no usable name")
        for method in ("fingerprint", "has_changed"):
            if not callable(getattr(filter, method, None)):
                raise TypeError(f"register_filter: {filter!r} does not provide a {method}() method")

        self.filters[name] = filter
        self._fingerprints[name] = filter.fingerprint()
        self._needs_update = True

    def get_filter(self, name: str) -> Optional[ProcessingFilter]:
        """Get a filter by name."""
        return self.filters.get(name)

    def filter_names(self) -> List[str]:
        """Registered names in composition order."""
        return [f.name for f in self.ordered_filters()]

    def ordered_filters(self) -> List[ProcessingFilter]:
        """Registered filters in the order they are composited."""
        ordered = [self.filters[name] for name in PIPELINE_ORDER if name in self.filters]
        for name, f in self.filters.items():
            if name not in PIPELINE_ORDER and name != EDGE_FILTER:
                ordered.append(f)
        if EDGE_FILTER in self.filters:
            ordered.append(self.filters[EDGE_FILTER])
        return ordered

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self) -> Iterator[ProcessingFilter]:
        return iter(self.ordered_filters())

    def __contains__(self, name: object) -> bool:
        return name in self.filters

    # ========== State updates ==========

    def set_redraw_callback(self, callback: Optional[Callable[[], None]]) -> None:
        """Called after every state change; the host decides when to redraw."""
        self._redraw = callback

    def update_filter_state(
        self,
        name: str,
        active: bool,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Set a filter's active flag and merge property updates.

        Unknown property names are ignored. Returns False if no filter with
        that name is registered.
        """
        filter = self.filters.get(name)
        if filter is None:
            logger.warning("update_filter_state: unknown filter %r", name)
            return False

        before = filter.fingerprint()
        filter.active = bool(active)
        for key, value in (properties or {}).items():
            if filter.get_parameter(key) is None:
                logger.debug("Filter %s has no property %r; ignored", name, key)
                continue
            if not filter.set_property(key, value):
                logger.warning(
                    "Filter %s: rejected %r for %s; keeping %r", name, value, key, filter.get_property(key)
                )

        if name in STRUCTURAL_FILTERS and filter.fingerprint() != before:
            self.invalidate_cache()

        self._needs_update = True
        self._request_redraw()
        return True

    def reset_all_filters(self) -> None:
        """Deactivate and reset every filter."""
        for filter in self.filters.values():
            filter.reset()
        self._needs_update = True
        self._request_redraw()

    def are_filters_active(self) -> bool:
        """True if any filter would visibly change the image."""
        return any(f.active and f.has_changed() for f in self.filters.values())

    # ========== Cache ==========

    def invalidate_cache(self) -> None:
        """Forget the cached composite (e.g. after the canvas was resized)."""
        logger.debug("Composite cache invalidated")
        self._cache = None
        self._needs_update = True

    def invalidate_source(self) -> None:
        """The source image or view changed: drop every cached result."""
        self.invalidate_cache()
        for filter in self.filters.values():
            filter.clear_cache()

    @property
    def needs_update(self) -> bool:
        """True if state changed since the last composite."""
        return self._needs_update

    def is_cache_valid(self, width: int, height: int) -> bool:
        """Whether the cached composite matches the current filters and these dimensions."""
        cache = self._cache
        if cache is None or cache.width != width or cache.height != height:
            return False
        if cache.fingerprints.keys() != self.filters.keys():
            return False
        return all(f.fingerprint() == cache.fingerprints[name] for name, f in self.filters.items())

    def _record_fingerprints(self) -> Dict[str, FilterFingerprint]:
        self._fingerprints = {name: f.fingerprint() for name, f in self.filters.items()}
        return dict(self._fingerprints)

    def _request_redraw(self) -> None:
        if self._redraw is not None:
            self._redraw()

    # ========== Composition ==========

    def composite(self, source: Raster) -> Raster:
        """
        Return a filtered copy of ``source``.

        ``source`` is never modified; the result is a new raster even when
        it comes from the cache.
        """
        if not self.are_filters_active():
            self.stats.skipped += 1
            return source.copy()
        return self._composite(source).copy()

    def composite_in_place(self, raster: Raster) -> Raster:
        """
        Filter ``raster`` in place and return it.

        Used by the live preview, which owns its buffer and does not need
        the unfiltered pixels afterwards.
        """
        if not self.are_filters_active():
            self.stats.skipped += 1
            return raster
        result = self._composite(raster)
        raster.data[...] = result.data
        return raster

    def _composite(self, source: Raster) -> Raster:
        if self.is_cache_valid(source.width, source.height):
            self.stats.cache_hits += 1
            self._needs_update = False
            logger.debug("Composite cache hit (%dx%d)", source.width, source.height)
            return self._cache.raster

        changed = [name for name, f in self.filters.items() if self._fingerprints.get(name) != f.fingerprint()]
        logger.debug("Compositing %dx%d (changed: %s)", source.width, source.height, ", ".join(changed) or "none")
        working = source.copy()
        original = source.copy()

        for filter in self.ordered_filters():
            if not filter.active:
                continue
            if filter.name == EDGE_FILTER:
                filter.apply(working, original)
            else:
                filter.apply(working)

        self._cache = CacheEntry(
            width=source.width,
            height=source.height,
            raster=working,
            fingerprints=self._record_fingerprints(),
        )
        self._needs_update = False
        self.stats.recomputes += 1
        return working

    # ========== Snapshots ==========

    def validate(self) -> tuple[bool, List[str]]:
        """Validate all filters in pipeline. Returns (is_valid, errors)."""
        errors = []
        for filter in self.ordered_filters():
            is_valid, filter_errors = filter.validate_parameters()
            if not is_valid:
                for error in filter_errors:
                    errors.append(f"Filter {filter.name}: {error}")
        return len(errors) == 0, errors

    def get_filter_config(self, name: str) -> Optional[Dict[str, Any]]:
        """Active flag and property values of one filter, for UI display."""
        filter = self.filters.get(name)
        return filter.config() if filter is not None else None

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Active flag and property values of every filter."""
        return {f.name: f.config() for f in self.ordered_filters()}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize filter states to a plain dictionary."""
        return {
            "filters": [
                {"name": f.name, **f.config()}
                for f in self.ordered_filters()
            ],
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "FilterPipeline":
        """Rebuild a pipeline from ``to_dict`` output; unknown filters are skipped."""
        pipeline = FilterPipeline()
        for filter_data in data.get("filters", []):
            filter_obj = create_filter(filter_data.get("name", ""))
            if filter_obj is None:
                logger.warning("Skipping unknown filter %r", filter_data.get("name"))
                continue
            for key, value in filter_data.get("properties", {}).items():
                filter_obj.set_property(key, value)
            filter_obj.active = bool(filter_data.get("active", False))
            pipeline.register_filter(filter_obj)
        return pipeline


def render_snapshot(raster: Raster, state: Mapping[str, Any]) -> Raster:
    """
    Composite ``raster`` with filters rebuilt from a ``to_dict`` snapshot.

    Shares no state with any live pipeline, so it is safe to call from a
    worker thread with a copied raster.
    """
    return FilterPipeline.from_dict(state).composite(raster)
