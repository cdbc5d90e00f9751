"""Pure layout functions for the canvas.

Nothing in this module touches the store or performs I/O: every function
takes the current geometry and returns freshly computed positions.  The
store (or the UI session) applies the results through its normal mutation
path.

Grid Arrangement
----------------
:func:`arrange_grid` packs items row-major into square cells.  The column
count is derived from the viewport width and never drops below one, so a
viewport narrower than a single cell still produces a one-column layout.
Cells start below ``reserved_top``, which keeps the prompt bar clear.

Variation Placement
-------------------
:func:`place_variations` returns the four slots around an origin tile in
the fixed order left, right, top, bottom.  Variations are assigned to slots
by index, so generation gateways must return them in that order.  Overlaps
with existing tiles are not detected.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .models import CanvasItem, Position

DEFAULT_ITEM_SIZE = 200
DEFAULT_GRID_GAP = 10
DEFAULT_RESERVED_TOP = 700
DEFAULT_VARIATION_GAP = 20

# Number of variations laid out around an origin tile.
VARIATION_COUNT = 4

DUPLICATE_OFFSET = (20.0, 20.0)


@dataclass(frozen=True)
class GridArrangement:
    """Result of :func:`arrange_grid`.

    Attributes:
        positions: New position per input item, in input order
        columns: Number of columns used
        container_height: Height the scrollable canvas needs to show every row
    """

    positions: tuple[Position, ...]
    columns: int
    container_height: int


def grid_columns(viewport_width: float, item_size: int, gap: int) -> int:
    """Return how many cells fit across the viewport, at least one."""
    cell = item_size + gap
    return max(1, math.floor((viewport_width - 2 * gap) / cell))


def arrange_grid(
    items: Sequence[CanvasItem],
    viewport_width: float,
    item_size: int = DEFAULT_ITEM_SIZE,
    gap: int = DEFAULT_GRID_GAP,
    reserved_top: int = DEFAULT_RESERVED_TOP,
) -> GridArrangement:
    """Pack items into a row-major grid below the reserved top area.

    Prior positions are ignored entirely, so the result depends only on the
    number of items and the geometry arguments.  The first item lands in
    the top-left cell.

    Args:
        items: Items in render order
        viewport_width: Width of the visible canvas in pixels
        item_size: Tile width and height
        gap: Gap between cells (also the outer margin)
        reserved_top: Vertical offset of the first row

    Returns:
        GridArrangement with one position per item and the required
        container height
    """
    cell = item_size + gap
    columns = grid_columns(viewport_width, item_size, gap)

    positions = []
    for index in range(len(items)):
        row, col = divmod(index, columns)
        positions.append(Position(col * cell + gap, reserved_top + row * cell + gap))

    rows = math.ceil(len(items) / columns)
    return GridArrangement(
        positions=tuple(positions),
        columns=columns,
        container_height=rows * cell + reserved_top,
    )


def place_variations(
    origin: Position,
    item_size: int = DEFAULT_ITEM_SIZE,
    gap: int = DEFAULT_VARIATION_GAP,
) -> tuple[Position, Position, Position, Position]:
    """Return the left, right, top and bottom slots around ``origin``."""
    distance = item_size + gap
    return (
        origin.offset(-distance, 0),
        origin.offset(distance, 0),
        origin.offset(0, -distance),
        origin.offset(0, distance),
    )


def duplicate_position(position: Position) -> Position:
    """Return where a duplicate of a tile at ``position`` is placed."""
    return position.offset(*DUPLICATE_OFFSET)
