"""Unit tests for the SQLite images database."""

import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from livecanvas.core.errors import PersistenceError
from livecanvas.core.images_db import ImagesDB
from livecanvas.core.models import CanvasItem, Position


def _item(name: str, x: float = 0, y: float = 0, item_id: int | None = None) -> CanvasItem:
    return CanvasItem(f"prompt {name}", f"https://img.test/{name}.png", Position(x, y), item_id)


class TestSchema:
    """Tests for database initialization."""

    def test_creates_parent_directory(self, temp_dir):
        """Test that missing parent directories are created."""
        db = ImagesDB(temp_dir / "nested" / "dir" / "images.db")
        assert db.db_path.exists()

    def test_reinitialization_keeps_rows(self, temp_dir):
        """Test that opening an existing database keeps its data."""
        path = temp_dir / "images.db"
        ImagesDB(path).save(_item("a"))
        assert ImagesDB(path).count() == 1

    def test_table_has_created_at(self, images_db):
        """Test that rows are timestamped."""
        with sqlite3.connect(images_db.db_path) as conn:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(images)")]
        assert "created_at" in columns


class TestSave:
    """Tests for create/update semantics."""

    def test_insert_assigns_id(self, images_db):
        """Test that an item without id is inserted."""
        saved, created = images_db.save(_item("a", 1, 2))

        assert created
        assert saved.id == 1
        assert images_db.get(1) == saved

    def test_update_by_id(self, images_db):
        """Test that an item with id updates that row."""
        saved, _ = images_db.save(_item("a", 1, 2))
        moved, created = images_db.save(saved.with_position(Position(30, 40)))

        assert not created
        assert moved.id == saved.id
        assert images_db.get(saved.id).position == Position(30, 40)
        assert images_db.count() == 1

    def test_update_by_url_when_id_missing(self, images_db):
        """Test that an unsaved copy of a known image updates its row."""
        original, _ = images_db.save(_item("a", 1, 2))
        copy = _item("a", 21, 22)

        saved, created = images_db.save(copy)

        assert not created
        assert saved.id == original.id
        assert images_db.count() == 1
        assert images_db.get(original.id).position == Position(21, 22)

    def test_update_of_vanished_row_inserts(self, images_db):
        """Test that saving an id whose row was deleted creates a new row."""
        saved, _ = images_db.save(_item("a"))
        images_db.delete(saved.id)

        resaved, created = images_db.save(saved)

        assert created
        assert resaved.id != saved.id
        assert images_db.count() == 1

    def test_concurrent_saves_of_new_url_insert_once(self, images_db):
        """Test that parallel saves of one unsaved image share a single row."""
        items = [_item("a", n, n) for n in range(8)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(images_db.save, items))

        assert images_db.count() == 1
        assert sum(created for _, created in results) == 1
        assert len({saved.id for saved, _ in results}) == 1


class TestQueries:
    """Tests for reads and deletes."""

    def test_get_all_in_insertion_order(self, images_db):
        """Test that items come back oldest first."""
        for name in ("a", "b", "c"):
            images_db.save(_item(name))
        assert [item.prompt for item in images_db.get_all()] == [
            "prompt a",
            "prompt b",
            "prompt c",
        ]

    def test_get_missing_returns_none(self, images_db):
        """Test that an unknown id yields None."""
        assert images_db.get(99) is None

    def test_delete(self, images_db):
        """Test that delete reports whether a row was removed."""
        saved, _ = images_db.save(_item("a"))
        assert images_db.delete(saved.id)
        assert not images_db.delete(saved.id)
        assert images_db.count() == 0

    def test_clear(self, images_db):
        """Test that clear removes every row."""
        images_db.save(_item("a"))
        images_db.save(_item("b"))
        images_db.clear()
        assert images_db.get_all() == []


class TestErrors:
    """Tests for SQLite failures."""

    def test_sqlite_error_becomes_persistence_error(self, images_db):
        """Test that driver errors surface as PersistenceError."""
        with sqlite3.connect(images_db.db_path) as conn:
            conn.execute("DROP TABLE images")

        with pytest.raises(PersistenceError):
            images_db.get_all()
