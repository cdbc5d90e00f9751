"""Generation gateway implementations.

FalOpenAIGenerationGateway
    Calls the upstream providers directly: images come from the fal.ai
    synchronous REST endpoint, prompt variations from an OpenAI chat
    completion.  Used by the backend.

HttpGenerationGateway
    Calls the backend's ``/api/generate`` and ``/api/variations`` endpoints.
    Used by canvas sessions that run outside the backend process.

Variation Contract
------------------
The chat model is asked for a JSON object ``{"prompts": [...]}``.  The
response is parsed strictly: anything that is not such an object, or that
holds fewer than four non-empty strings, is a
:class:`~livecanvas.core.errors.VariationError`.  The four prompts keep the
order the model returned them in, which is the left, right, top, bottom
order used by :func:`~livecanvas.core.layout.place_variations`.
"""

from __future__ import annotations

import asyncio
import json
import logging

import httpx
from openai import AsyncOpenAI, OpenAIError

from livecanvas.core.config import LiveCanvasConfig
from livecanvas.core.errors import GenerationError, VariationError
from livecanvas.core.layout import VARIATION_COUNT
from livecanvas.core.models import Variation

from .base import GenerationGateway

logger = logging.getLogger(__name__)

VARIATION_INSTRUCTIONS = (
    "Generate {count} slight variations of this image prompt, maintaining the same "
    'general theme but with small changes. Original prompt: "{prompt}". '
    'Respond with a JSON object of the form {{"prompts": ["...", "..."]}} '
    "containing exactly {count} prompt strings and nothing else."
)


def parse_variation_prompts(content: str | None, count: int = VARIATION_COUNT) -> list[str]:
    """Extract variation prompts from a chat completion message.

    Args:
        content: Raw message content returned by the chat model
        count: Number of prompts required

    Returns:
        The first ``count`` non-empty prompts, stripped

    Raises:
        VariationError: If the content is not the expected JSON object or
            holds fewer than ``count`` usable prompts
    """
    if not content:
        raise VariationError("Empty variation response")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise VariationError(f"Variation response is not JSON: {e}") from e

    prompts = data.get("prompts") if isinstance(data, dict) else None
    if not isinstance(prompts, list):
        raise VariationError("Variation response has no 'prompts' list")

    valid = [p.strip() for p in prompts if isinstance(p, str) and p.strip()]
    if len(valid) < count:
        raise VariationError(f"Did not receive {count} valid prompt variations")
    return valid[:count]


class FalOpenAIGenerationGateway(GenerationGateway):
    """Generate images with fal.ai and prompt variations with OpenAI.

    Args:
        fal_key: fal.ai API key
        openai_client: Configured ``AsyncOpenAI`` client, or None when no
            OpenAI key is available (variations then fail)
        image_model: fal.ai application id, e.g. ``fal-ai/flux/schnell``
        variation_model: Chat model used for paraphrasing
        image_width: Requested image width
        image_height: Requested image height
        fal_base_url: Root of the fal.ai REST API
        timeout: Request timeout in seconds
        http_client: Pre-built ``httpx.AsyncClient`` for the fal.ai calls
    """

    def __init__(
        self,
        fal_key: str | None,
        openai_client: AsyncOpenAI | None,
        image_model: str = "fal-ai/flux/schnell",
        variation_model: str = "gpt-4o-mini",
        image_width: int = 200,
        image_height: int = 200,
        fal_base_url: str = "https://fal.run",
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.fal_key = fal_key
        self.openai = openai_client
        self.image_model = image_model
        self.variation_model = variation_model
        self.image_width = image_width
        self.image_height = image_height
        self._http = http_client or httpx.AsyncClient(base_url=fal_base_url, timeout=timeout)
        logger.info(
            f"Generation gateway ready (images: {image_model}, variations: {variation_model})"
        )

    @classmethod
    def from_config(cls, config: LiveCanvasConfig) -> FalOpenAIGenerationGateway:
        openai_client = None
        if config.openai_api_key:
            openai_client = AsyncOpenAI(
                api_key=config.openai_api_key, timeout=config.request_timeout
            )
        else:
            logger.warning("OpenAI API key is not set; variations are unavailable")
        return cls(
            fal_key=config.fal_key,
            openai_client=openai_client,
            image_model=config.image_model,
            variation_model=config.variation_model,
            image_width=config.image_width,
            image_height=config.image_height,
            fal_base_url=config.fal_base_url,
            timeout=config.request_timeout,
        )

    async def generate_image(self, prompt: str) -> str:
        if not self.fal_key:
            raise GenerationError("fal.ai API key is not set")

        logger.info(f"Generating image for prompt: {prompt!r}")
        payload = {
            "prompt": prompt,
            "image_size": {"width": self.image_width, "height": self.image_height},
        }
        try:
            response = await self._http.post(
                f"/{self.image_model}",
                json=payload,
                headers={"Authorization": f"Key {self.fal_key}"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Image generation failed: {e}")
            raise GenerationError(f"Image generation failed: {e}") from e
        except ValueError as e:
            raise GenerationError(f"Malformed image response: {e}") from e

        images = data.get("images") if isinstance(data, dict) else None
        first = images[0] if isinstance(images, list) and images else None
        url = first.get("url") if isinstance(first, dict) else None
        if not isinstance(url, str) or not url:
            raise GenerationError("No image URL in response")
        return url

    async def generate_variations(self, prompt: str) -> list[Variation]:
        if self.openai is None:
            raise VariationError("OpenAI API key is not set")

        try:
            completion = await self.openai.chat.completions.create(
                model=self.variation_model,
                messages=[
                    {
                        "role": "user",
                        "content": VARIATION_INSTRUCTIONS.format(
                            count=VARIATION_COUNT, prompt=prompt
                        ),
                    }
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error(f"Variation prompt request failed: {e}")
            raise VariationError(f"Variation prompt request failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        prompts = parse_variation_prompts(content)
        logger.info(f"Variation prompts: {prompts}")

        # Let every request finish before reporting, so none outlive aclose()
        results = await asyncio.gather(
            *(self.generate_image(p) for p in prompts), return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            if isinstance(failures[0], GenerationError):
                raise VariationError(
                    f"Could not generate all variation images: {failures[0]}"
                ) from failures[0]
            raise failures[0]

        return [Variation(prompt=p, image_url=url) for p, url in zip(prompts, results)]

    async def aclose(self) -> None:
        await self._http.aclose()
        if self.openai is not None:
            await self.openai.close()


class HttpGenerationGateway(GenerationGateway):
    """Generation through the backend's REST API.

    Args:
        base_url: Backend API root, e.g. ``http://localhost:3002/api``
        timeout: Request timeout in seconds
        client: Pre-built ``httpx.AsyncClient``
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ):
        if client is None:
            if base_url is None:
                raise ValueError("base_url is required when no client is given")
            client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._client = client

    async def _post(self, url: str, prompt: str, error_cls: type[GenerationError]) -> dict:
        try:
            response = await self._client.post(url, json={"prompt": prompt})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"POST {url} failed: {e}")
            raise error_cls(f"POST {url} failed: {e}") from e
        except ValueError as e:
            raise error_cls(f"Malformed response from {url}: {e}") from e
        if not isinstance(data, dict):
            raise error_cls(f"Malformed response from {url}")
        return data

    async def generate_image(self, prompt: str) -> str:
        data = await self._post("/generate", prompt, GenerationError)
        url = data.get("imageUrl")
        if not isinstance(url, str) or not url:
            raise GenerationError("No image URL in response")
        return url

    async def generate_variations(self, prompt: str) -> list[Variation]:
        data = await self._post("/variations", prompt, VariationError)
        entries = data.get("variations")
        if not isinstance(entries, list):
            raise VariationError("No variations in response")
        variations = [
            Variation(prompt=v["prompt"], image_url=v["imageUrl"])
            for v in entries
            if isinstance(v, dict)
            and isinstance(v.get("prompt"), str)
            and isinstance(v.get("imageUrl"), str)
            and v["prompt"]
            and v["imageUrl"]
        ]
        if len(variations) < VARIATION_COUNT:
            raise VariationError(f"Did not receive {VARIATION_COUNT} variations")
        return variations[:VARIATION_COUNT]

    async def aclose(self) -> None:
        await self._client.aclose()
