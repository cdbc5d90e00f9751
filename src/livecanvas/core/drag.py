"""Pointer-driven dragging of a single canvas tile.

A :class:`DragController` is created per rendered tile.  It translates
pointer events into positions and reports every intermediate position to
the :class:`~livecanvas.core.store.CanvasStore` as it happens, so the store
never lags behind what the user sees.

State machine::

    IDLE --pointer_down (inside tile)--> DRAGGING
    DRAGGING --pointer_move--> DRAGGING       (store.update_position)
    DRAGGING --pointer_up / pointer_cancel--> IDLE

``hovered`` is tracked independently of the drag state and only drives
visual affordances (stacking order, visible buttons).

While dragging, position updates coming from the store (for example a grid
re-layout) are ignored so they cannot fight the pointer.  Dropping a tile
does not persist it; durable saves only happen on an explicit save.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .layout import DEFAULT_ITEM_SIZE
from .models import CanvasItem, Position
from .store import CanvasStore

logger = logging.getLogger(__name__)

HOVER_Z_INDEX = 50


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class Bounds:
    """Size of the parent container a tile is dragged within."""

    width: float
    height: float

    def clamp(self, position: Position, item_size: float) -> Position:
        """Keep a tile of ``item_size`` fully inside the container."""
        max_x = max(0.0, self.width - item_size)
        max_y = max(0.0, self.height - item_size)
        return Position(
            min(max(position.x, 0.0), max_x),
            min(max(position.y, 0.0), max_y),
        )


class DragController:
    """Drag state machine for the tile identified by ``image_url``.

    Args:
        store: Store that receives position updates
        image_url: Identity of the dragged tile
        bounds: Parent container the tile is clamped to
        item_size: Tile width and height
    """

    def __init__(
        self,
        store: CanvasStore,
        image_url: str,
        bounds: Bounds,
        item_size: int = DEFAULT_ITEM_SIZE,
    ):
        item = store.find(image_url)
        if item is None:
            raise KeyError(f"No canvas item with image url {image_url!r}")

        self.store = store
        self.image_url = image_url
        self.bounds = bounds
        self.item_size = item_size

        self.state = DragState.IDLE
        self.hovered = False
        self.position = item.position

        self._start_position: Position | None = None
        self._start_pointer: Position | None = None
        self._unsubscribe = None

    @property
    def dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    @property
    def z_index(self) -> int:
        return HOVER_Z_INDEX if self.hovered else 0

    def attach(self) -> DragController:
        """Start following position changes published by the store."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.on_store_update)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def contains(self, pointer: Position) -> bool:
        """Return True if ``pointer`` lies on the tile."""
        return (
            self.position.x <= pointer.x <= self.position.x + self.item_size
            and self.position.y <= pointer.y <= self.position.y + self.item_size
        )

    def pointer_down(self, pointer: Position) -> bool:
        """Begin a drag if the pointer went down on the tile.

        Returns:
            True if a drag started
        """
        if self.dragging or not self.contains(pointer):
            return False
        self.state = DragState.DRAGGING
        self._start_position = self.position
        self._start_pointer = pointer
        logger.debug(f"Drag started for {self.image_url} at {self.position}")
        return True

    def pointer_move(self, pointer: Position) -> Position | None:
        """Move the tile with the pointer and report the new position.

        Returns:
            The new position, or None when no drag is in progress
        """
        if not self.dragging:
            return None

        candidate = self._start_position.offset(
            pointer.x - self._start_pointer.x,
            pointer.y - self._start_pointer.y,
        )
        self.position = self.bounds.clamp(candidate, self.item_size)
        self.store.update_position(self.image_url, self.position)
        logger.debug(f"Dragged {self.image_url} to {self.position}")
        return self.position

    def pointer_up(self) -> None:
        self._finish()

    def pointer_cancel(self) -> None:
        self._finish()

    def pointer_enter(self) -> None:
        self.hovered = True

    def pointer_leave(self) -> None:
        self.hovered = False

    def on_store_update(self, snapshot: tuple[CanvasItem, ...]) -> None:
        """Adopt external position changes unless a drag is in progress."""
        if self.dragging:
            return
        item = next((i for i in snapshot if i.image_url == self.image_url), None)
        if item is not None:
            self.position = item.position

    def _finish(self) -> None:
        if not self.dragging:
            return
        self.state = DragState.IDLE
        self._start_position = None
        self._start_pointer = None
        logger.debug(f"Drag finished for {self.image_url} at {self.position}")
