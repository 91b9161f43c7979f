"""Generation provider adapter.

One entry point, ``GenerationProviderAdapter.generate``, in front of the
interchangeable image backends. With ``USE_MOCK_PROVIDERS`` on (the
development default) every request is served by the mock backend so the API
runs without API keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import structlog

from roomai.config import settings
from roomai.errors import ProviderError
from roomai.models.contracts import GenerationOptions, GenerationResult, PromptInput

logger = structlog.get_logger()


class GenerationBackend(Protocol):
    name: str

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult: ...


def _default_backends() -> dict[str, GenerationBackend]:
    from roomai.providers.openai_images import OpenAIImageBackend
    from roomai.providers.replicate import ReplicateBackend

    return {"openai": OpenAIImageBackend(), "replicate": ReplicateBackend()}


class GenerationProviderAdapter:
    def __init__(
        self,
        backends: Mapping[str, GenerationBackend] | None = None,
        *,
        use_mock: bool | None = None,
    ) -> None:
        self._backends = dict(backends) if backends is not None else None
        self._use_mock = settings.use_mock_providers if use_mock is None else use_mock

    def _resolve(self, provider: str) -> GenerationBackend:
        if self._use_mock:
            from roomai.providers.mock import MockBackend

            return MockBackend()
        if self._backends is None:
            self._backends = _default_backends()
        backend = self._backends.get(provider)
        if backend is None:
            raise ProviderError(f"Unsupported AI provider: {provider}", provider=provider)
        return backend

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        backend = self._resolve(options.provider)
        logger.info(
            "provider_generate_start",
            provider=options.provider,
            backend=backend.name,
            has_input_image=options.input_image_url is not None,
        )
        result = await backend.generate(prompt_input, options)
        logger.info(
            "provider_generate_done",
            provider=options.provider,
            backend=backend.name,
            image_count=len(result.image_urls),
        )
        return result
