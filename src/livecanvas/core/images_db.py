"""SQLite database for durable canvas items."""

import logging
import sqlite3
from pathlib import Path

from .errors import PersistenceError
from .models import CanvasItem, Position

logger = logging.getLogger(__name__)


class ImagesDB:
    """Manage the durable images table using SQLite.

    Each row holds the prompt, image URL and canvas position of one saved
    item.  Rows are keyed by an autoincrement integer id; the image URL is
    additionally treated as a natural key when saving items that have no id
    yet, so re-saving an unsaved copy of a known image updates its row
    instead of inserting a second one.
    """

    def __init__(self, db_path: Path):
        """Initialize the images database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info(f"Initialized images database at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS images (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        prompt TEXT NOT NULL,
                        image_url TEXT NOT NULL,
                        position_x REAL NOT NULL,
                        position_y REAL NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    """)

                # Saves without an id look rows up by URL
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_images_image_url
                    ON images(image_url)
                    """)

                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error initializing images database {self.db_path}: {e}")
            raise PersistenceError(f"Cannot initialize images database: {e}") from e

    @staticmethod
    def _row_to_item(row: tuple) -> CanvasItem:
        item_id, prompt, image_url, x, y = row
        return CanvasItem(prompt=prompt, image_url=image_url, position=Position(x, y), id=item_id)

    def save(self, item: CanvasItem) -> tuple[CanvasItem, bool]:
        """Create or update the row for an item.

        - With an id: update that row.  If the row no longer exists, a new
          row is inserted and the item comes back with the new id.
        - Without an id: update the row with the same image URL if there is
          one, otherwise insert.

        Args:
            item: Item to persist

        Returns:
            Tuple of (item carrying its row id, True if a row was inserted)

        Raises:
            PersistenceError: On any SQLite failure
        """
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                # Hold the write lock across the URL lookup and the insert
                cursor.execute("BEGIN IMMEDIATE")

                if item.id is not None:
                    cursor.execute(
                        """
                        UPDATE images
                        SET prompt = ?, image_url = ?, position_x = ?, position_y = ?
                        WHERE id = ?
                        """,
                        (item.prompt, item.image_url, item.position.x, item.position.y, item.id),
                    )
                    if cursor.rowcount > 0:
                        conn.commit()
                        logger.debug(f"Updated image {item.id}")
                        return item, False
                    logger.warning(f"Image {item.id} no longer exists, inserting a new row")
                else:
                    cursor.execute(
                        "SELECT id FROM images WHERE image_url = ? ORDER BY id LIMIT 1",
                        (item.image_url,),
                    )
                    existing = cursor.fetchone()
                    if existing is not None:
                        existing_id = existing[0]
                        cursor.execute(
                            """
                            UPDATE images
                            SET prompt = ?, position_x = ?, position_y = ?
                            WHERE id = ?
                            """,
                            (item.prompt, item.position.x, item.position.y, existing_id),
                        )
                        conn.commit()
                        logger.debug(f"Updated image {existing_id} matched by URL")
                        return item.with_id(existing_id), False

                cursor.execute(
                    """
                    INSERT INTO images (prompt, image_url, position_x, position_y)
                    VALUES (?, ?, ?, ?)
                    """,
                    (item.prompt, item.image_url, item.position.x, item.position.y),
                )
                conn.commit()
                new_id = cursor.lastrowid
                logger.info(f"Inserted image {new_id}: {item.prompt!r}")
                return item.with_id(new_id), True

        except sqlite3.Error as e:
            logger.error(f"Error saving image {item.image_url}: {e}")
            raise PersistenceError(f"Cannot save image: {e}") from e

    def get(self, item_id: int) -> CanvasItem | None:
        """Return the item stored under ``item_id``, or None."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT id, prompt, image_url, position_x, position_y
                    FROM images WHERE id = ?
                    """,
                    (item_id,),
                )
                row = cursor.fetchone()
                return self._row_to_item(row) if row else None

        except sqlite3.Error as e:
            logger.error(f"Error getting image {item_id}: {e}")
            raise PersistenceError(f"Cannot read image: {e}") from e

    def get_all(self) -> list[CanvasItem]:
        """Get all saved items.

        Returns:
            Items in insertion order (oldest first)
        """
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT id, prompt, image_url, position_x, position_y
                    FROM images ORDER BY id
                    """)
                return [self._row_to_item(row) for row in cursor.fetchall()]

        except sqlite3.Error as e:
            logger.error(f"Error getting images: {e}")
            raise PersistenceError(f"Cannot read images: {e}") from e

    def delete(self, item_id: int) -> bool:
        """Delete a saved item.

        Returns:
            True if a row was deleted, False if none matched
        """
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM images WHERE id = ?", (item_id,))
                conn.commit()

                was_deleted = cursor.rowcount > 0
                if was_deleted:
                    logger.info(f"Deleted image {item_id}")
                else:
                    logger.debug(f"Image {item_id} not found")
                return was_deleted

        except sqlite3.Error as e:
            logger.error(f"Error deleting image {item_id}: {e}")
            raise PersistenceError(f"Cannot delete image: {e}") from e

    def count(self) -> int:
        """Get total count of saved items."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM images")
                result = cursor.fetchone()
                return result[0] if result else 0

        except sqlite3.Error as e:
            logger.error(f"Error counting images: {e}")
            raise PersistenceError(f"Cannot count images: {e}") from e

    def clear(self) -> None:
        """Delete every saved item."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM images")
                conn.commit()
                logger.info("Cleared all images")

        except sqlite3.Error as e:
            logger.error(f"Error clearing images: {e}")
            raise PersistenceError(f"Cannot clear images: {e}") from e


def migrate() -> None:
    """Create the images schema in the configured database.

    Registered as the ``livecanvas-migrate`` console script.
    """
    from .config import config

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ImagesDB(config.database_path)
    logger.info("Migrations completed successfully")


if __name__ == "__main__":
    migrate()
