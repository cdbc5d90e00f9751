"""Tests for livecanvas.core.config: configuration management.

Tests cover:
- Default values for canvas geometry and provider settings.
- Environment variable overrides via the LIVECANVAS_ prefix.
- Automatic creation of the database directory.
- Pydantic validation constraints (port range, log level literals, etc.).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from livecanvas.core.config import LiveCanvasConfig


class TestConfigDefaults:
    """Verify that LiveCanvasConfig provides sensible defaults."""

    def test_default_geometry(self, test_config: LiveCanvasConfig):
        """Tiles are 200px with 10px grid gaps and 20px variation gaps."""
        assert test_config.item_size == 200
        assert test_config.grid_gap == 10
        assert test_config.variation_gap == 20
        assert test_config.reserved_top == 700

    def test_default_position(self, test_config: LiveCanvasConfig):
        """Freshly generated images land at (50, 50)."""
        assert (test_config.default_x, test_config.default_y) == (50.0, 50.0)

    def test_default_image_model(self, test_config: LiveCanvasConfig):
        """Images are generated with FLUX schnell at 200x200."""
        assert test_config.image_model == "fal-ai/flux/schnell"
        assert (test_config.image_width, test_config.image_height) == (200, 200)

    def test_default_server_port(self, monkeypatch, temp_dir: Path):
        """Default server port should be 3002."""
        monkeypatch.delenv("LIVECANVAS_SERVER_PORT", raising=False)
        cfg = LiveCanvasConfig(database_path=temp_dir / "images.db", _env_file=None)
        assert cfg.server_port == 3002

    def test_default_keys_unset(self, monkeypatch, temp_dir: Path):
        """Provider keys are absent unless configured."""
        monkeypatch.delenv("LIVECANVAS_FAL_KEY", raising=False)
        monkeypatch.delenv("LIVECANVAS_OPENAI_API_KEY", raising=False)
        cfg = LiveCanvasConfig(database_path=temp_dir / "images.db", _env_file=None)
        assert cfg.fal_key is None
        assert cfg.openai_api_key is None


class TestConfigEnvironment:
    """Verify LIVECANVAS_ environment overrides."""

    def test_env_overrides(self, monkeypatch, temp_dir: Path):
        """Environment variables take precedence over defaults."""
        monkeypatch.setenv("LIVECANVAS_ITEM_SIZE", "128")
        monkeypatch.setenv("LIVECANVAS_API_BASE_URL", "http://canvas.test/api")
        monkeypatch.setenv("LIVECANVAS_DATABASE_PATH", str(temp_dir / "env.db"))

        cfg = LiveCanvasConfig(_env_file=None)

        assert cfg.item_size == 128
        assert cfg.api_base_url == "http://canvas.test/api"
        assert cfg.database_path == temp_dir / "env.db"


class TestConfigDirectoryCreation:
    """Verify that LiveCanvasConfig creates the database directory."""

    def test_database_dir_created(self, test_config: LiveCanvasConfig):
        """The parent of database_path should exist after initialisation."""
        assert test_config.database_path.parent.is_dir()

    def test_creates_nested_directories(self, temp_dir: Path):
        """Config should create deeply nested directories via parents=True."""
        cfg = LiveCanvasConfig(database_path=temp_dir / "a" / "b" / "c" / "images.db")
        assert cfg.database_path.parent.is_dir()


class TestConfigValidation:
    """Verify Pydantic validation constraints on config fields."""

    def test_invalid_port_too_low(self, temp_dir: Path):
        """Server port below 1024 should raise a validation error."""
        with pytest.raises(Exception):
            LiveCanvasConfig(server_port=80, database_path=temp_dir / "images.db")

    def test_invalid_log_level(self, temp_dir: Path):
        """Unsupported log levels should raise a validation error."""
        with pytest.raises(Exception):
            LiveCanvasConfig(log_level="LOUD", database_path=temp_dir / "images.db")

    def test_invalid_item_size(self, temp_dir: Path):
        """Tiles must have a positive size."""
        with pytest.raises(Exception):
            LiveCanvasConfig(item_size=0, database_path=temp_dir / "images.db")
