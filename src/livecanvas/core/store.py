"""In-memory canvas state with optimistic persistence.

:class:`CanvasStore` owns the ordered sequence of :class:`CanvasItem` values
that the canvas renders.  It is the only component allowed to mutate that
sequence, and every mutation is synchronous: the new state is visible to
:meth:`CanvasStore.snapshot` and pushed to subscribers before the method
returns.

Persistence is optimistic.  Saves and deletes are scheduled as asyncio tasks
on the running loop and never block or roll back the in-memory mutation
that triggered them.  When a save completes, only the durable ``id`` it
returned is merged back, onto the items that still carry the saved
``image_url``.  Newer local edits (for example a drag that happened while
the save was in flight) are kept, and a save whose item has since been
deleted is dropped.

Identity
--------
Items are matched by ``image_url`` rather than ``id`` because locally
created items have no ``id`` until their first save.  Duplicates share the
``image_url`` of their source, so identity-based operations apply to every
matching item.

Grid Re-layout
--------------
:meth:`CanvasStore.arrange_grid` applies the new positions immediately and
returns a :class:`PendingLayout`.  Positions are written durably only once
the caller signals that the visual transition has finished by calling
:meth:`PendingLayout.settle`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Iterable, Sequence

from livecanvas.gateways.base import PersistenceGateway

from . import layout
from .errors import PersistenceError
from .models import CanvasItem, Position

logger = logging.getLogger(__name__)

Snapshot = tuple[CanvasItem, ...]
Listener = Callable[[Snapshot], None]


class PendingLayout:
    """A grid arrangement that has been applied but not yet persisted."""

    def __init__(
        self,
        store: CanvasStore,
        image_urls: Sequence[str],
        columns: int,
        container_height: int,
    ):
        self._store = store
        self._image_urls = tuple(image_urls)
        self.columns = columns
        self.container_height = container_height
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def settle(self) -> list[asyncio.Task]:
        """Signal that the layout transition finished and persist positions.

        Every repositioned item that already has a durable ``id`` is saved
        with the position it holds at the time of this call.  Only the first
        call has any effect.

        Returns:
            The scheduled save tasks
        """
        if self._settled:
            return []
        self._settled = True
        return self._store._persist_positions(self._image_urls)


class CanvasStore:
    """Authoritative, ordered collection of canvas items.

    Args:
        persistence: Gateway used for saves, deletes and the initial load.
            When None, persistence operations are skipped with a warning.
        items: Optional initial items, in render order
    """

    def __init__(
        self,
        persistence: PersistenceGateway | None = None,
        items: Iterable[CanvasItem] = (),
    ):
        self._persistence = persistence
        self._items: list[CanvasItem] = list(items)
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._items)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        """Return an immutable copy of the current sequence."""
        return tuple(self._items)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` to receive the snapshot after each mutation.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def find(self, image_url: str) -> CanvasItem | None:
        """Return the first item with ``image_url``, or None."""
        return next((item for item in self._items if item.image_url == image_url), None)

    def _commit(self, items: list[CanvasItem]) -> None:
        self._items = items
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, item: CanvasItem) -> None:
        """Append ``item`` to the end of the sequence."""
        self._commit([*self._items, item])

    def add_items(self, items: Iterable[CanvasItem]) -> None:
        """Append several items as a single observable update."""
        new_items = list(items)
        if not new_items:
            return
        self._commit([*self._items, *new_items])

    def remove_item(self, image_url: str) -> list[CanvasItem]:
        """Remove every item whose ``image_url`` matches.

        Returns:
            The removed items, in their former order
        """
        removed = [item for item in self._items if item.image_url == image_url]
        if removed:
            self._commit([item for item in self._items if item.image_url != image_url])
        return removed

    def update_position(self, image_url: str, position: Position) -> None:
        """Move matching items to ``position``; unknown identities are ignored."""
        if not any(item.image_url == image_url for item in self._items):
            return
        self._commit(
            [
                item.with_position(position) if item.image_url == image_url else item
                for item in self._items
            ]
        )

    def replace_item(self, image_url: str, new_item: CanvasItem) -> None:
        """Substitute ``new_item`` for matching items, keeping their place."""
        if not any(item.image_url == image_url for item in self._items):
            return
        self._commit([new_item if item.image_url == image_url else item for item in self._items])

    def duplicate_item(self, image_url: str) -> CanvasItem | None:
        """Append a copy of the item with ``image_url``, offset and without an id.

        The copy has no durable identity, so saving it never overwrites the
        source's row through an id match.

        Returns:
            The new item, or None if no item matches
        """
        source = self.find(image_url)
        if source is None:
            return None
        duplicate = CanvasItem(
            prompt=source.prompt,
            image_url=source.image_url,
            position=layout.duplicate_position(source.position),
        )
        self.add_item(duplicate)
        return duplicate

    def clear(self) -> None:
        """Remove every item from the canvas (not from durable storage)."""
        self._commit([])

    def arrange_grid(
        self,
        viewport_width: float,
        item_size: int = layout.DEFAULT_ITEM_SIZE,
        gap: int = layout.DEFAULT_GRID_GAP,
        reserved_top: int = layout.DEFAULT_RESERVED_TOP,
    ) -> PendingLayout:
        """Re-layout every item into a grid and apply it immediately.

        Returns:
            PendingLayout whose ``settle()`` persists the new positions
        """
        arrangement = layout.arrange_grid(
            self._items, viewport_width, item_size=item_size, gap=gap, reserved_top=reserved_top
        )
        self._commit(
            [
                item.with_position(position)
                for item, position in zip(self._items, arrangement.positions)
            ]
        )
        logger.info(
            f"Arranged {len(self._items)} items in {arrangement.columns} columns "
            f"(height {arrangement.container_height}px)"
        )
        return PendingLayout(
            self,
            [item.image_url for item in self._items],
            arrangement.columns,
            arrangement.container_height,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self, persistence: PersistenceGateway | None = None) -> Snapshot:
        """Seed the store with every durable item.

        A failed load leaves the canvas empty instead of blocking startup.
        """
        gateway = persistence or self._persistence
        if gateway is None:
            logger.warning("No persistence gateway configured; starting with an empty canvas")
            return self.snapshot()

        try:
            items = await gateway.load_all()
        except PersistenceError as e:
            logger.error(f"Failed to load saved images: {e}")
            items = []

        self._commit(list(items))
        logger.info(f"Loaded {len(items)} saved images")
        return self.snapshot()

    def save_item(self, image_url: str) -> asyncio.Task | None:
        """Schedule a durable save of the current state of ``image_url``.

        Returns:
            The scheduled task, or None if nothing was scheduled
        """
        item = self.find(image_url)
        if item is None:
            logger.warning(f"Cannot save unknown image: {image_url}")
            return None
        return self._schedule(self._save(item))

    def delete_item(self, image_url: str) -> list[CanvasItem]:
        """Remove matching items and schedule deletion of their durable rows.

        Must be called from a running event loop when a persistence gateway
        is configured.

        Returns:
            The removed items

        Raises:
            RuntimeError: If no event loop is running; the canvas is unchanged
        """
        if self._persistence is not None:
            asyncio.get_running_loop()
        removed = self.remove_item(image_url)
        for item_id in dict.fromkeys(item.id for item in removed if item.id is not None):
            self._schedule(self._delete(item_id))
        return removed

    async def drain(self) -> None:
        """Wait until every scheduled persistence call has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _schedule(self, coro: Coroutine[None, None, None]) -> asyncio.Task | None:
        if self._persistence is None:
            logger.warning("No persistence gateway configured; skipping durable write")
            coro.close()
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _save(self, item: CanvasItem) -> None:
        try:
            saved = await self._persistence.save(item)
        except PersistenceError as e:
            logger.error(f"Failed to save image {item.image_url}: {e}")
            return

        if saved is None or saved.id is None:
            logger.debug(f"Updated saved image {item.id}")
            return
        self._apply_id(item.image_url, saved.id)

    async def _delete(self, item_id: int) -> None:
        try:
            await self._persistence.delete(item_id)
        except PersistenceError as e:
            logger.error(f"Failed to delete saved image {item_id}: {e}")
            return
        logger.info(f"Deleted saved image {item_id}")

    def _apply_id(self, image_url: str, item_id: int) -> None:
        stale = [item for item in self._items if item.image_url == image_url and item.id != item_id]
        if not stale:
            if self.find(image_url) is None:
                logger.debug(f"Saved image {image_url} is no longer on the canvas")
            return
        self._commit(
            [
                item.with_id(item_id) if item.image_url == image_url else item
                for item in self._items
            ]
        )
        logger.info(f"Saved image {image_url} as {item_id}")

    def _persist_positions(self, image_urls: Sequence[str]) -> list[asyncio.Task]:
        wanted = set(image_urls)
        tasks = []
        for item in self._items:
            if item.image_url in wanted and item.id is not None:
                task = self._schedule(self._save(item))
                if task is not None:
                    tasks.append(task)
        return tasks
