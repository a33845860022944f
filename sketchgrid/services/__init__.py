"""Services module initialization."""
from .project_state import ProjectState
from .preview_runner import PreviewManager
from .settings import Settings

__all__ = ["ProjectState", "PreviewManager", "Settings"]
