"""Tests for livecanvas.api.models: Pydantic request/response models.

Tests cover:
- camelCase ``imageUrl`` aliases on input and output.
- Optional ids on saved items.
- Validation of empty prompts and image URLs.
- Conversion to and from core CanvasItem values.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from livecanvas.api.models import (
    GenerateResponse,
    ImageModel,
    PromptRequest,
    SaveImageResponse,
)
from livecanvas.core.models import CanvasItem, Position


class TestPromptRequest:
    """Test PromptRequest Pydantic model."""

    def test_prompt_required(self):
        """Omitting the prompt should raise ValidationError."""
        with pytest.raises(ValidationError):
            PromptRequest()

    def test_blank_prompt_accepted(self):
        """Blank prompts validate; the endpoint rejects them with 400."""
        assert PromptRequest(prompt="  ").prompt == "  "


class TestGenerateResponse:
    """Test GenerateResponse serialisation."""

    def test_dumps_camel_case(self):
        """The image URL is emitted as imageUrl."""
        resp = GenerateResponse(image_url="https://img.test/a.png")
        assert resp.model_dump(by_alias=True) == {"imageUrl": "https://img.test/a.png"}


class TestImageModel:
    """Test ImageModel validation and conversion."""

    def _payload(self, **overrides) -> dict:
        payload = {
            "prompt": "a fox",
            "imageUrl": "https://img.test/fox.png",
            "position": {"x": 10, "y": 20},
        }
        payload.update(overrides)
        return payload

    def test_id_optional(self):
        """Unsaved items arrive without an id."""
        model = ImageModel.model_validate(self._payload())
        assert model.id is None

    def test_explicit_null_id(self):
        """A null id is treated the same as a missing one."""
        model = ImageModel.model_validate(self._payload(id=None))
        assert model.id is None

    def test_empty_prompt_rejected(self):
        """An empty prompt should raise ValidationError."""
        with pytest.raises(ValidationError):
            ImageModel.model_validate(self._payload(prompt=""))

    def test_empty_image_url_rejected(self):
        """An empty imageUrl should raise ValidationError."""
        with pytest.raises(ValidationError):
            ImageModel.model_validate(self._payload(imageUrl=""))

    def test_missing_position_rejected(self):
        """A position is required."""
        payload = self._payload()
        del payload["position"]
        with pytest.raises(ValidationError):
            ImageModel.model_validate(payload)

    def test_to_item(self):
        """Validated payloads convert to core canvas items."""
        model = ImageModel.model_validate(self._payload(id=3))
        assert model.to_item() == CanvasItem(
            "a fox", "https://img.test/fox.png", Position(10.0, 20.0), 3
        )

    def test_from_item_matches_core_wire_shape(self):
        """API output and CanvasItem.to_dict agree on field names."""
        item = CanvasItem("a fox", "https://img.test/fox.png", Position(1.5, 2.5), 9)
        assert ImageModel.from_item(item).model_dump(by_alias=True) == item.to_dict()


class TestSaveImageResponse:
    """Test SaveImageResponse serialisation."""

    def test_nested_alias(self):
        """The nested image keeps the imageUrl alias."""
        item = CanvasItem("a fox", "https://img.test/fox.png", Position(0, 0), 1)
        resp = SaveImageResponse(image=ImageModel.from_item(item), created=True)

        data = resp.model_dump(by_alias=True)

        assert data["created"] is True
        assert data["image"]["imageUrl"] == "https://img.test/fox.png"
        assert data["image"]["id"] == 1
