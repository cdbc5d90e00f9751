"""Shared pytest fixtures for Live Canvas tests."""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from livecanvas.core.config import LiveCanvasConfig
from livecanvas.core.errors import GenerationError, PersistenceError, VariationError
from livecanvas.core.images_db import ImagesDB
from livecanvas.core.models import CanvasItem, Position, Variation
from livecanvas.core.store import CanvasStore
from livecanvas.gateways.base import GenerationGateway, PersistenceGateway


class FakePersistenceGateway(PersistenceGateway):
    """In-memory persistence honouring the create/update-by-url contract.

    Set ``fail`` to make every call raise PersistenceError, or assign an
    ``asyncio.Event`` to ``gate`` to hold saves until the test releases them.
    """

    def __init__(self, rows: list[CanvasItem] | None = None):
        self.rows: dict[int, CanvasItem] = {row.id: row for row in rows or []}
        self.next_id = max(self.rows, default=0) + 1
        self.saved: list[CanvasItem] = []
        self.deleted: list[int] = []
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def save(self, item: CanvasItem) -> CanvasItem | None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise PersistenceError("storage offline")
        self.saved.append(item)

        if item.id is not None:
            self.rows[item.id] = item
            return None

        existing = next((r for r in self.rows.values() if r.image_url == item.image_url), None)
        item_id = existing.id if existing else self.next_id
        if existing is None:
            self.next_id += 1
        stored = item.with_id(item_id)
        self.rows[item_id] = stored
        return stored

    async def delete(self, item_id: int) -> None:
        if self.fail:
            raise PersistenceError("storage offline")
        self.deleted.append(item_id)
        self.rows.pop(item_id, None)

    async def load_all(self) -> list[CanvasItem]:
        if self.fail:
            raise PersistenceError("storage offline")
        return list(self.rows.values())

    async def clear(self) -> None:
        self.rows.clear()

    async def aclose(self) -> None:
        self.closed = True


class FakeGenerationGateway(GenerationGateway):
    """Deterministic generation: image URLs are derived from the prompt."""

    def __init__(self):
        self.image_error: GenerationError | None = None
        self.variation_error: VariationError | None = None
        self.prompts: list[str] = []
        self.closed = False

    async def generate_image(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.image_error is not None:
            raise self.image_error
        return f"https://img.test/{prompt.replace(' ', '-')}.png"

    async def generate_variations(self, prompt: str) -> list[Variation]:
        self.prompts.append(prompt)
        if self.variation_error is not None:
            raise self.variation_error
        return [
            Variation(prompt=f"{prompt} ({side})", image_url=f"https://img.test/{side}.png")
            for side in ("left", "right", "top", "bottom")
        ]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> LiveCanvasConfig:
    """Create a test configuration pointing at a temporary database."""
    return LiveCanvasConfig(
        database_path=temp_dir / "data" / "images.db",
        fal_key="test-fal-key",
        openai_api_key="test-openai-key",
        _env_file=None,
    )


@pytest.fixture
def images_db(temp_dir: Path) -> ImagesDB:
    """Create an empty SQLite images database."""
    return ImagesDB(temp_dir / "images.db")


@pytest.fixture
def persistence() -> FakePersistenceGateway:
    return FakePersistenceGateway()


@pytest.fixture
def generation() -> FakeGenerationGateway:
    return FakeGenerationGateway()


@pytest.fixture
def sample_items() -> list[CanvasItem]:
    """Five unsaved items at (0,0), (50,50) ... (200,200)."""
    return [
        CanvasItem(
            prompt=f"prompt {i}",
            image_url=f"https://img.test/{i}.png",
            position=Position(i * 50, i * 50),
        )
        for i in range(5)
    ]


@pytest.fixture
def store(persistence: FakePersistenceGateway, sample_items: list[CanvasItem]) -> CanvasStore:
    return CanvasStore(persistence, sample_items)


@pytest.fixture
def test_client(images_db: ImagesDB, generation: FakeGenerationGateway) -> Generator:
    """FastAPI TestClient over a temporary database and fake generation.

    The client is entered as a context manager so the application lifespan
    runs and populates ``app.state``.
    """
    from fastapi.testclient import TestClient

    from livecanvas.api.main import create_app

    app = create_app(images_db=images_db, generation=generation)
    with TestClient(app) as client:
        yield client
