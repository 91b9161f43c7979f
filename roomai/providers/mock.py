"""Mock generation backend.

Returns realistic stub data so the API can be exercised end to end without
provider credentials. Selected for every request while USE_MOCK_PROVIDERS is on.
"""

import asyncio
from uuid import uuid4

from roomai.config import settings
from roomai.models.contracts import GenerationOptions, GenerationResult, PromptInput
from roomai.services.prompt import render_prompt


class MockBackend:
    name = "mock"

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        if settings.mock_generation_delay > 0:
            await asyncio.sleep(settings.mock_generation_delay)
        batch = uuid4().hex[:8]
        return GenerationResult(
            image_urls=[
                f"https://images.example.com/mock/{batch}/option_{i}.png" for i in range(2)
            ],
            prompt=render_prompt(prompt_input),
            metadata={
                "provider": options.provider,
                "model": "mock",
                "processingTime": int(settings.mock_generation_delay * 1000),
            },
        )
