"""Live Canvas: FastAPI Application.

This module is the entry point of the backend.  It defines the FastAPI
application factory, all REST API routes, and the ``main()`` CLI function
that launches the uvicorn server.

Architecture
------------
- **Generation** is delegated to a
  :class:`~livecanvas.gateways.base.GenerationGateway` (fal.ai for images,
  OpenAI for prompt variations by default).
- **Persistence** uses a single SQLite database through
  :class:`~livecanvas.core.images_db.ImagesDB`.
- Both collaborators live on ``app.state``.  They are either passed to
  :func:`create_app` or built from the global configuration when the
  application starts.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/health``               Version and status
POST      ``/api/generate``             Generate one image from a prompt
POST      ``/api/variations``           Generate four prompt variations
GET       ``/api/images``               List saved canvas items
POST      ``/api/images``               Create or update a saved item
DELETE    ``/api/images/{id}``          Delete a saved item
DELETE    ``/api/images``               Delete every saved item
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    livecanvas

Direct invocation::

    python -m livecanvas.api.main
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from livecanvas import __version__
from livecanvas.api.models import (
    GenerateResponse,
    ImageModel,
    ImagesResponse,
    PromptRequest,
    SaveImageResponse,
    VariationModel,
    VariationsResponse,
)
from livecanvas.core.config import config
from livecanvas.core.errors import GenerationError, PersistenceError, VariationError
from livecanvas.core.images_db import ImagesDB
from livecanvas.gateways.base import GenerationGateway
from livecanvas.gateways.generation import FalOpenAIGenerationGateway

logger = logging.getLogger(__name__)


def create_app(
    images_db: ImagesDB | None = None,
    generation: GenerationGateway | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        images_db: Database to serve ``/api/images`` from.  Built from
            ``config.database_path`` on startup when omitted.
        generation: Gateway used by the generation endpoints.  Built from
            the global configuration on startup when omitted.

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Construct collaborators on startup and release them on shutdown."""
        # --- Startup -------------------------------------------------------
        app.state.images_db = (
            images_db if images_db is not None else ImagesDB(config.database_path)
        )
        owns_generation = generation is None
        app.state.generation = (
            generation if generation is not None else FalOpenAIGenerationGateway.from_config(config)
        )
        logger.info("Live Canvas backend started.")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        if owns_generation:
            await app.state.generation.aclose()
        logger.info("Live Canvas backend stopped.")

    app = FastAPI(
        title="Live Canvas",
        description="Prompt-driven image generation on a free-form canvas.",
        version=__version__,
        lifespan=lifespan,
    )

    # The canvas frontend is served from its own origin during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _images_db(request: Request) -> ImagesDB:
    return request.app.state.images_db


def _generation(request: Request) -> GenerationGateway:
    return request.app.state.generation


def _register_routes(app: FastAPI) -> None:
    @app.get("/api/health")
    async def health() -> dict:
        """Return the API version and a static status flag."""
        return {"status": "ok", "version": __version__}

    @app.post("/api/generate", response_model=GenerateResponse, response_model_by_alias=True)
    async def generate_image(req: PromptRequest, request: Request) -> GenerateResponse:
        """Generate a single image for a prompt.

        Raises:
            HTTPException: 400 for a blank prompt, 502 if generation fails.
        """
        prompt = req.prompt.strip()
        if not prompt:
            raise HTTPException(status_code=400, detail="prompt must not be empty")

        logger.info(f"Received prompt: {prompt!r}")
        try:
            image_url = await _generation(request).generate_image(prompt)
        except GenerationError as e:
            logger.error(f"Failed to generate image: {e}")
            raise HTTPException(status_code=502, detail="Failed to generate image") from e
        return GenerateResponse(image_url=image_url)

    @app.post(
        "/api/variations", response_model=VariationsResponse, response_model_by_alias=True
    )
    async def generate_variations(req: PromptRequest, request: Request) -> VariationsResponse:
        """Generate four variations of a prompt, each with its own image.

        Raises:
            HTTPException: 400 for a blank prompt, 502 if fewer than four
                variations could be produced.
        """
        prompt = req.prompt.strip()
        if not prompt:
            raise HTTPException(status_code=400, detail="prompt must not be empty")

        try:
            variations = await _generation(request).generate_variations(prompt)
        except VariationError as e:
            logger.error(f"Failed to generate variations: {e}")
            raise HTTPException(status_code=502, detail="Failed to generate variations") from e
        return VariationsResponse(
            variations=[VariationModel(prompt=v.prompt, image_url=v.image_url) for v in variations]
        )

    @app.get("/api/images", response_model=ImagesResponse, response_model_by_alias=True)
    async def list_images(request: Request) -> ImagesResponse:
        """Return every saved canvas item, oldest first."""
        items = await _run_db(_images_db(request).get_all)
        return ImagesResponse(images=[ImageModel.from_item(item) for item in items])

    @app.post("/api/images", response_model=SaveImageResponse, response_model_by_alias=True)
    async def save_image(image: ImageModel, request: Request) -> SaveImageResponse:
        """Create or update a saved canvas item.

        Items with an ``id`` update that row.  Items without one update the
        row holding the same ``imageUrl`` if it exists, otherwise a new row
        is inserted.
        """
        saved, created = await _run_db(_images_db(request).save, image.to_item())
        return SaveImageResponse(image=ImageModel.from_item(saved), created=created)

    @app.delete("/api/images/{image_id}")
    async def delete_image(image_id: int, request: Request) -> dict:
        """Delete a saved canvas item.

        Raises:
            HTTPException: 404 if the item is not found.
        """
        deleted = await _run_db(_images_db(request).delete, image_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Image not found")
        return {"success": True, "deleted": image_id}

    @app.delete("/api/images")
    async def clear_images(request: Request) -> dict:
        """Delete every saved canvas item."""
        await _run_db(_images_db(request).clear)
        return {"success": True}


async def _run_db(func, *args):
    """Run a blocking database call in a worker thread.

    Raises:
        HTTPException: 503 when the database is unavailable.
    """
    try:
        return await asyncio.to_thread(func, *args)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail="Image storage unavailable") from e


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~livecanvas.core.config.config` (which
    loads from ``LIVECANVAS_SERVER_HOST`` and ``LIVECANVAS_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:3002``.

    This function is registered as the ``livecanvas`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "livecanvas.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
