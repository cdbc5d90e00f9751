"""Collaborator gateways used by the canvas core.

Modules
-------
base
    ``GenerationGateway`` and ``PersistenceGateway`` abstract interfaces.
generation
    fal.ai/OpenAI client and backend HTTP client for image generation.
persistence
    SQLite-backed and backend HTTP clients for durable storage.
"""

from livecanvas.gateways.base import GenerationGateway, PersistenceGateway
from livecanvas.gateways.generation import (
    FalOpenAIGenerationGateway,
    HttpGenerationGateway,
    parse_variation_prompts,
)
from livecanvas.gateways.persistence import HttpPersistenceGateway, LocalPersistenceGateway

__all__ = [
    "FalOpenAIGenerationGateway",
    "GenerationGateway",
    "HttpGenerationGateway",
    "HttpPersistenceGateway",
    "LocalPersistenceGateway",
    "PersistenceGateway",
    "parse_variation_prompts",
]
