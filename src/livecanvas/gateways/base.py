"""Abstract collaborator interfaces consumed by the canvas core.

The canvas store and the UI session never talk to the network or a
database directly.  They are handed instances of the two interfaces below,
which keeps them testable with fakes and makes construction and teardown
of the real clients explicit.

Gateway Contracts
-----------------
GenerationGateway
    ``generate_image`` turns a prompt into an image reference.
    ``generate_variations`` returns exactly four ``Variation`` values in
    left, right, top, bottom order.

PersistenceGateway
    ``save`` creates or updates a durable row.  A create returns the item
    with its new ``id``; an update (the item already has an ``id``) returns
    ``None``.  A create whose ``image_url`` already exists updates that row
    instead of inserting a duplicate and returns the item with the existing
    row's ``id``.

See Also
--------
- livecanvas.gateways.generation: fal.ai/OpenAI and backend HTTP clients
- livecanvas.gateways.persistence: SQLite-backed and backend HTTP clients
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from livecanvas.core.models import CanvasItem, Variation


class GenerationGateway(ABC):
    """Turns prompts into images and prompt variations."""

    @abstractmethod
    async def generate_image(self, prompt: str) -> str:
        """Generate an image and return its URL.

        Raises:
            GenerationError: If the upstream call fails or returns no image
        """

    @abstractmethod
    async def generate_variations(self, prompt: str) -> list[Variation]:
        """Generate four prompt variations with an image for each.

        Raises:
            VariationError: If fewer than four valid variations are obtainable
        """

    async def aclose(self) -> None:
        """Release any network resources held by the gateway."""


class PersistenceGateway(ABC):
    """Durable CRUD storage for canvas items."""

    @abstractmethod
    async def save(self, item: CanvasItem) -> CanvasItem | None:
        """Create or update the durable row for ``item``.

        Raises:
            PersistenceError: On network or storage failure
        """

    @abstractmethod
    async def delete(self, item_id: int) -> None:
        """Delete the durable row with ``item_id``."""

    @abstractmethod
    async def load_all(self) -> list[CanvasItem]:
        """Return every durable item."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every durable item."""

    async def aclose(self) -> None:
        """Release any network resources held by the gateway."""
