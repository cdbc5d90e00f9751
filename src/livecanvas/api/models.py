"""Pydantic request and response models for the Live Canvas API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.  Field aliases keep the camelCase wire names the
canvas client uses (``imageUrl``).

Models
------
PromptRequest
    Payload for ``POST /api/generate`` and ``POST /api/variations``.
PositionModel / ImageModel
    A canvas item as stored and returned by ``/api/images``.
SaveImageResponse
    Result of ``POST /api/images``, flagging whether a row was inserted.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from livecanvas.core.models import CanvasItem, Position


class PromptRequest(BaseModel):
    """Request body for the generation endpoints.

    Attributes:
        prompt: Text prompt to generate from (or to vary).
    """

    prompt: str = Field(
        ...,
        description="Text prompt for the image.",
    )


class GenerateResponse(BaseModel):
    """Response body for ``POST /api/generate``."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., alias="imageUrl")


class VariationModel(BaseModel):
    """One prompt variation and its image."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    image_url: str = Field(..., alias="imageUrl")


class VariationsResponse(BaseModel):
    """Response body for ``POST /api/variations``.

    Variations are ordered left, right, top, bottom.
    """

    variations: list[VariationModel]


class PositionModel(BaseModel):
    x: float
    y: float


class ImageModel(BaseModel):
    """A canvas item on the wire.

    Attributes:
        id: Durable row id.  Omitted or null for items not saved yet.
        prompt: Prompt the image was generated from.
        image_url: Image URL or data URI (``imageUrl`` on the wire).
        position: Canvas position of the tile.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = Field(
        default=None,
        description="Durable row id, or null for unsaved items.",
    )
    prompt: str = Field(..., min_length=1)
    image_url: str = Field(..., alias="imageUrl", min_length=1)
    position: PositionModel

    def to_item(self) -> CanvasItem:
        return CanvasItem(
            prompt=self.prompt,
            image_url=self.image_url,
            position=Position(self.position.x, self.position.y),
            id=self.id,
        )

    @classmethod
    def from_item(cls, item: CanvasItem) -> ImageModel:
        return cls(
            id=item.id,
            prompt=item.prompt,
            image_url=item.image_url,
            position=PositionModel(x=item.position.x, y=item.position.y),
        )


class ImagesResponse(BaseModel):
    """Response body for ``GET /api/images``."""

    images: list[ImageModel]


class SaveImageResponse(BaseModel):
    """Response body for ``POST /api/images``.

    Attributes:
        image: The stored item, always carrying its row id.
        created: True if a new row was inserted, False if one was updated.
    """

    image: ImageModel
    created: bool
