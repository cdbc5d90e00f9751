"""Core canvas engine.

This package holds everything that decides where images sit on the canvas
and how that state is reconciled with durable storage:

- **models.py**: ``Position``, ``CanvasItem`` and ``Variation`` value types
- **layout.py**: Pure grid, variation and duplicate placement functions
- **store.py**: ``CanvasStore``, the single mutable source of truth
- **drag.py**: ``DragController`` pointer state machine per tile
- **images_db.py**: SQLite table backing the persistence gateways
- **errors.py**: ``GenerationError``, ``VariationError``, ``PersistenceError``
- **config.py**: Pydantic Settings configuration (``LIVECANVAS_`` prefix)

Usage Example
-------------
    from livecanvas.core import CanvasStore, CanvasItem, Position

    store = CanvasStore()
    store.add_item(CanvasItem("a red fox", "https://img/fox.png", Position(50, 50)))
    pending = store.arrange_grid(viewport_width=1220)
    pending.settle()  # once the layout transition has finished
"""

from livecanvas.core.config import LiveCanvasConfig, config
from livecanvas.core.drag import Bounds, DragController, DragState
from livecanvas.core.errors import (
    GenerationError,
    LiveCanvasError,
    PersistenceError,
    VariationError,
)
from livecanvas.core.images_db import ImagesDB
from livecanvas.core.layout import (
    GridArrangement,
    arrange_grid,
    duplicate_position,
    place_variations,
)
from livecanvas.core.models import CanvasItem, Position, Variation
from livecanvas.core.store import CanvasStore, PendingLayout

__all__ = [
    "Bounds",
    "CanvasItem",
    "CanvasStore",
    "DragController",
    "DragState",
    "GenerationError",
    "GridArrangement",
    "ImagesDB",
    "LiveCanvasConfig",
    "LiveCanvasError",
    "PendingLayout",
    "PersistenceError",
    "Position",
    "Variation",
    "VariationError",
    "arrange_grid",
    "config",
    "duplicate_position",
    "place_variations",
]
