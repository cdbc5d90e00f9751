"""Configuration management for Live Canvas.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LIVECANVAS_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LIVECANVAS_* prefix)
2. .env file in the project root
3. Default values defined in LiveCanvasConfig

Example .env file:
    LIVECANVAS_FAL_KEY=...
    LIVECANVAS_OPENAI_API_KEY=sk-...
    LIVECANVAS_DATABASE_PATH=data/images.db
    LIVECANVAS_SERVER_PORT=3002

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
It only carries settings; gateways and the database are constructed
explicitly from it by the application entry points.

Usage Example
-------------
    from livecanvas.core.config import config

    print(config.database_path)
    print(config.item_size)

Canvas Geometry
---------------
The layout defaults mirror the on-screen geometry of the canvas:
- item_size: rendered width/height of every image tile (200px)
- grid_gap: gap between grid cells when arranging (10px)
- reserved_top: vertical space above the grid kept free for the prompt bar
- variation_gap: gap between an image and its four variations (20px)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LiveCanvasConfig(BaseSettings):
    """Main configuration for Live Canvas.

    Attributes
    ----------
    Storage:
        database_path : Path
            SQLite database file holding the durable canvas items

    Generation Providers:
        fal_key : str | None
            API key for the fal.ai image endpoint
        fal_base_url : str
            Base URL of the fal.ai synchronous REST API
        image_model : str
            fal.ai model application id
        image_width, image_height : int
            Requested image dimensions in pixels
        openai_api_key : str | None
            API key for the chat-completion provider
        variation_model : str
            Chat model used to paraphrase prompts into variations
        request_timeout : float
            Timeout in seconds for upstream HTTP calls

    Client / Server:
        api_base_url : str
            Base URL the HTTP gateways use to reach the backend
        server_host, server_port
            Bind address of the uvicorn server

    Canvas Geometry:
        item_size, grid_gap, reserved_top, variation_gap : int
        default_x, default_y : float
            Where freshly generated images land

    Notes
    -----
    - The parent directory of database_path is created on initialization
    - To modify config, set environment variables and restart the application
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LIVECANVAS_",
        case_sensitive=False,
    )

    # Storage
    database_path: Path = Field(
        default=Path("data/images.db"),
        description="SQLite database file for durable canvas items",
    )

    # Image generation (fal.ai)
    fal_key: str | None = Field(default=None, description="fal.ai API key")
    fal_base_url: str = Field(
        default="https://fal.run",
        description="Base URL of the fal.ai synchronous REST API",
    )
    image_model: str = Field(
        default="fal-ai/flux/schnell",
        description="fal.ai model application id",
    )
    image_width: int = Field(default=200, ge=64, le=2048)
    image_height: int = Field(default=200, ge=64, le=2048)

    # Prompt variations (chat completion)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    variation_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used to generate prompt variations",
    )
    request_timeout: float = Field(default=120.0, gt=0)

    # Client / server
    api_base_url: str = Field(
        default="http://localhost:3002/api",
        description="Base URL of the backend used by the HTTP gateways",
    )
    server_host: str = Field(default="0.0.0.0", description="Server bind address")
    server_port: int = Field(default=3002, ge=1024, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    # Canvas geometry
    item_size: int = Field(default=200, ge=1)
    grid_gap: int = Field(default=10, ge=0)
    reserved_top: int = Field(default=700, ge=0)
    variation_gap: int = Field(default=20, ge=0)
    default_x: float = Field(default=50.0)
    default_y: float = Field(default=50.0)

    def __init__(self, **kwargs):
        """Initialize configuration and create the database directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.database_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = LiveCanvasConfig()
