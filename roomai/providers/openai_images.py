"""OpenAI image backend (Images API via the official async SDK).

The Images API generates from text only, so a room source image is not sent;
its presence is recorded in the result metadata.
"""

from __future__ import annotations

import time

import openai
import structlog

from roomai.config import settings
from roomai.errors import ProviderError
from roomai.models.contracts import GenerationOptions, GenerationResult, PromptInput
from roomai.services.prompt import render_prompt

logger = structlog.get_logger()


class OpenAIImageBackend:
    name = "openai"

    def __init__(self, client: openai.AsyncOpenAI | None = None) -> None:
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise ProviderError("OpenAI API key is not configured", provider=self.name)
            self._client = openai.AsyncOpenAI(api_key=settings.openai_api_key)
        return self._client

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        client = self._get_client()
        prompt = render_prompt(prompt_input)
        started = time.monotonic()
        try:
            response = await client.images.generate(
                model=settings.openai_image_model,
                prompt=prompt,
                size=settings.openai_image_size,  # type: ignore[arg-type]
                quality=settings.openai_image_quality,  # type: ignore[arg-type]
                n=1,
            )
        except openai.APIError as exc:
            logger.warning("openai_generate_failed", error_type=type(exc).__name__)
            raise ProviderError(f"OpenAI image generation failed: {exc}", provider=self.name) from exc

        data = response.data or []
        image_urls = [item.url for item in data if item.url]
        if not image_urls:
            raise ProviderError("OpenAI returned no images", provider=self.name)
        revised_prompt = next((item.revised_prompt for item in data if item.revised_prompt), None)

        return GenerationResult(
            image_urls=image_urls,
            prompt=revised_prompt or prompt,
            metadata={
                "provider": self.name,
                "model": settings.openai_image_model,
                "processingTime": int((time.monotonic() - started) * 1000),
                "parameters": {
                    "size": settings.openai_image_size,
                    "quality": settings.openai_image_quality,
                },
                "inputImageUsed": False,
            },
        )
