"""Data models for canvas items and their positions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class Position:
    """A point on the unbounded canvas plane.

    Coordinates are plain floats with no inherent bounds; clipping is a
    concern of whatever container renders the canvas.
    """

    x: float
    y: float

    def offset(self, dx: float, dy: float) -> Position:
        """Return a new position translated by ``(dx, dy)``."""
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(float(data["x"]), float(data["y"]))


@dataclass(frozen=True)
class CanvasItem:
    """A generated image placed on the canvas.

    Items are immutable values; every mutation in the store swaps in a new
    instance built with :meth:`with_position` or :meth:`with_id`.

    Attributes:
        prompt: Prompt the image was generated from
        image_url: Opaque reference to the image (URL or data URI).  Acts as
            the local identity of the item, since unsaved items have no id.
        position: Top-left corner of the tile on the canvas
        id: Durable row id, or None while the item is unsaved
    """

    prompt: str
    image_url: str
    position: Position
    id: int | None = None

    def with_position(self, position: Position) -> CanvasItem:
        return replace(self, position=position)

    def with_id(self, item_id: int | None) -> CanvasItem:
        return replace(self, id=item_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape shared by the backend and the gateways."""
        return {
            "id": self.id,
            "prompt": self.prompt,
            "imageUrl": self.image_url,
            "position": self.position.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CanvasItem:
        item_id = data.get("id")
        return cls(
            prompt=data["prompt"],
            image_url=data["imageUrl"],
            position=Position.from_dict(data["position"]),
            id=int(item_id) if item_id is not None else None,
        )


@dataclass(frozen=True)
class Variation:
    """A paraphrased prompt together with the image generated from it."""

    prompt: str
    image_url: str
