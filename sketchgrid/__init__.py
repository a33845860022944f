"""SketchGrid: filters that turn a photo into a drawing reference."""

__version__ = "0.1.0"
