"""Live Canvas - prompt-driven image generation on a free-form canvas."""

__version__ = "0.1.0"

from livecanvas.core.config import LiveCanvasConfig, config
from livecanvas.core.models import CanvasItem, Position, Variation
from livecanvas.core.store import CanvasStore

__all__ = [
    "CanvasItem",
    "CanvasStore",
    "LiveCanvasConfig",
    "Position",
    "Variation",
    "config",
]
