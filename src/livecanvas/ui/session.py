"""Session controller for the canvas UI.

A :class:`CanvasSession` bundles the canvas store with the two gateways and
exposes the actions the canvas UI offers: generating an image from the
prompt bar, generating variations around a tile, duplicating, deleting,
saving, dragging, and arranging every tile in a grid.

Only one generation or variation request is admitted at a time; the
``loading`` flag gates new submissions and is what the UI shows as its busy
indicator.  Generation failures never add partial results to the canvas and
always clear ``loading``.
"""

from __future__ import annotations

import asyncio
import logging

from livecanvas.core import layout
from livecanvas.core.config import LiveCanvasConfig
from livecanvas.core.drag import Bounds, DragController
from livecanvas.core.errors import GenerationError, VariationError
from livecanvas.core.models import CanvasItem, Position
from livecanvas.core.store import CanvasStore, PendingLayout
from livecanvas.gateways.base import GenerationGateway, PersistenceGateway
from livecanvas.gateways.generation import HttpGenerationGateway
from livecanvas.gateways.persistence import HttpPersistenceGateway

logger = logging.getLogger(__name__)


class CanvasSession:
    """User-facing canvas actions over a store and its gateways.

    Args:
        generation: Gateway producing images and variations
        persistence: Gateway for durable storage
        store: Existing store to drive; one is created when omitted
        item_size: Tile width and height
        grid_gap: Gap between cells when arranging
        reserved_top: Space kept free above the grid
        variation_gap: Gap between a tile and its variations
        default_position: Where freshly generated images land
    """

    def __init__(
        self,
        generation: GenerationGateway,
        persistence: PersistenceGateway,
        store: CanvasStore | None = None,
        item_size: int = layout.DEFAULT_ITEM_SIZE,
        grid_gap: int = layout.DEFAULT_GRID_GAP,
        reserved_top: int = layout.DEFAULT_RESERVED_TOP,
        variation_gap: int = layout.DEFAULT_VARIATION_GAP,
        default_position: Position = Position(50, 50),
    ):
        self.generation = generation
        self.persistence = persistence
        self.store = store if store is not None else CanvasStore(persistence)
        self.item_size = item_size
        self.grid_gap = grid_gap
        self.reserved_top = reserved_top
        self.variation_gap = variation_gap
        self.default_position = default_position

        self.loading = False
        self.last_error: str | None = None
        self.container_height: int | None = None

    @classmethod
    def from_config(cls, config: LiveCanvasConfig) -> CanvasSession:
        """Create a session talking to the backend at ``config.api_base_url``."""
        persistence = HttpPersistenceGateway(config.api_base_url, timeout=config.request_timeout)
        return cls(
            generation=HttpGenerationGateway(config.api_base_url, timeout=config.request_timeout),
            persistence=persistence,
            item_size=config.item_size,
            grid_gap=config.grid_gap,
            reserved_top=config.reserved_top,
            variation_gap=config.variation_gap,
            default_position=Position(config.default_x, config.default_y),
        )

    async def start(self) -> tuple[CanvasItem, ...]:
        """Load the saved canvas.  An unreachable backend yields an empty canvas."""
        return await self.store.load(self.persistence)

    async def close(self) -> None:
        """Wait for pending saves, then release the gateways."""
        logger.info("Closing canvas session")
        await self.store.drain()
        await self.generation.aclose()
        await self.persistence.aclose()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, prompt: str) -> CanvasItem | None:
        """Generate an image for ``prompt`` and place it on the canvas.

        Blank prompts and submissions while another request is running are
        ignored.

        Returns:
            The new item, or None if nothing was added
        """
        prompt = prompt.strip()
        if not prompt or self.loading:
            return None

        self.loading = True
        self.last_error = None
        try:
            image_url = await self.generation.generate_image(prompt)
        except GenerationError as e:
            logger.error(f"Failed to generate image: {e}")
            self.last_error = "Failed to generate image"
            return None
        finally:
            self.loading = False

        item = CanvasItem(prompt=prompt, image_url=image_url, position=self.default_position)
        self.store.add_item(item)
        return item

    async def generate_variations(self, image_url: str) -> list[CanvasItem]:
        """Generate four variations of a tile's prompt and lay them out around it.

        Returns:
            The new items (left, right, top, bottom), or an empty list on failure
        """
        if self.loading:
            return []
        origin = self.store.find(image_url)
        if origin is None:
            logger.warning(f"Original image not found: {image_url}")
            self.last_error = "Original image not found"
            return []

        self.loading = True
        self.last_error = None
        try:
            variations = await self.generation.generate_variations(origin.prompt)
            if len(variations) != layout.VARIATION_COUNT:
                raise VariationError(
                    f"Expected {layout.VARIATION_COUNT} variations, got {len(variations)}"
                )
        except VariationError as e:
            logger.error(f"Failed to generate variations: {e}")
            self.last_error = "Failed to generate variations"
            return []
        finally:
            self.loading = False

        # The origin may have been dragged while the request was running.
        current = self.store.find(image_url) or origin
        slots = layout.place_variations(
            current.position, item_size=self.item_size, gap=self.variation_gap
        )
        items = [
            CanvasItem(prompt=v.prompt, image_url=v.image_url, position=slot)
            for v, slot in zip(variations, slots)
        ]
        self.store.add_items(items)
        return items

    # ------------------------------------------------------------------
    # Tile actions
    # ------------------------------------------------------------------

    def duplicate(self, image_url: str) -> CanvasItem | None:
        return self.store.duplicate_item(image_url)

    def delete(self, image_url: str) -> list[CanvasItem]:
        return self.store.delete_item(image_url)

    def save(self, image_url: str) -> asyncio.Task | None:
        """Persist the tile's current prompt and position."""
        return self.store.save_item(image_url)

    def drag_controller(self, image_url: str, bounds: Bounds) -> DragController:
        """Return an attached drag controller for the tile."""
        return DragController(self.store, image_url, bounds, item_size=self.item_size).attach()

    def arrange_grid(self, viewport_width: float) -> PendingLayout:
        """Arrange every tile in a grid sized to the viewport.

        The caller must call ``settle()`` on the result once the layout
        transition has finished to persist the new positions.
        """
        pending = self.store.arrange_grid(
            viewport_width,
            item_size=self.item_size,
            gap=self.grid_gap,
            reserved_top=self.reserved_top,
        )
        self.container_height = pending.container_height
        return pending
