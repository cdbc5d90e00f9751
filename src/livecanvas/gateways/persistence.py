"""Persistence gateway implementations.

LocalPersistenceGateway
    Talks to :class:`~livecanvas.core.images_db.ImagesDB` in-process.  SQLite
    calls run in a worker thread so they never stall the event loop.

HttpPersistenceGateway
    Talks to the ``/api/images`` endpoints of the Live Canvas backend over
    HTTP using ``httpx``.

Both map their failures to :class:`~livecanvas.core.errors.PersistenceError`
and follow the save contract of
:class:`~livecanvas.gateways.base.PersistenceGateway`: a create returns the
item with its id, an update returns None.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from livecanvas.core.errors import PersistenceError
from livecanvas.core.images_db import ImagesDB
from livecanvas.core.models import CanvasItem

from .base import PersistenceGateway

logger = logging.getLogger(__name__)


def _save_result(item: CanvasItem, saved: CanvasItem, created: bool) -> CanvasItem | None:
    # Items that arrived without an id, or whose row had vanished, learn their id.
    if item.id is None or created:
        return saved
    return None


class LocalPersistenceGateway(PersistenceGateway):
    """Persistence backed directly by a SQLite :class:`ImagesDB`."""

    def __init__(self, db: ImagesDB):
        self.db = db

    async def save(self, item: CanvasItem) -> CanvasItem | None:
        saved, created = await asyncio.to_thread(self.db.save, item)
        return _save_result(item, saved, created)

    async def delete(self, item_id: int) -> None:
        await asyncio.to_thread(self.db.delete, item_id)

    async def load_all(self) -> list[CanvasItem]:
        return await asyncio.to_thread(self.db.get_all)

    async def clear(self) -> None:
        await asyncio.to_thread(self.db.clear)


class HttpPersistenceGateway(PersistenceGateway):
    """Persistence through the backend's REST API.

    Usage:
        gateway = HttpPersistenceGateway("http://localhost:3002/api")
        items = await gateway.load_all()
        await gateway.aclose()

    Args:
        base_url: Backend API root, e.g. ``http://localhost:3002/api``
        timeout: Request timeout in seconds
        client: Pre-built ``httpx.AsyncClient`` (its base_url is used as is)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if client is None:
            if base_url is None:
                raise ValueError("base_url is required when no client is given")
            client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._client = client
        logger.info(f"HttpPersistenceGateway using {self._client.base_url}")

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise PersistenceError(f"{method} {url} failed: {e}") from e
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"{e.request.method} {e.request.url} returned {response.status_code}"
            ) from e

    async def save(self, item: CanvasItem) -> CanvasItem | None:
        response = await self._request("POST", "/images", json=item.to_dict())
        self._raise_for_status(response)
        try:
            data = response.json()
            saved = CanvasItem.from_dict(data["image"])
            created = bool(data.get("created", False))
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Malformed save response: {e}") from e
        return _save_result(item, saved, created)

    async def delete(self, item_id: int) -> None:
        response = await self._request("DELETE", f"/images/{item_id}")
        if response.status_code == 404:
            logger.debug(f"Image {item_id} was already deleted")
            return
        self._raise_for_status(response)

    async def load_all(self) -> list[CanvasItem]:
        response = await self._request("GET", "/images")
        self._raise_for_status(response)
        try:
            return [CanvasItem.from_dict(entry) for entry in response.json()["images"]]
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Malformed images response: {e}") from e

    async def clear(self) -> None:
        response = await self._request("DELETE", "/images")
        self._raise_for_status(response)

    async def aclose(self) -> None:
        await self._client.aclose()
