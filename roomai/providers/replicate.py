"""Replicate backend over the HTTP API.

Creates a prediction on the configured model, then polls its ``urls.get``
until it reaches a terminal status. No deadline is applied here; the
generation job bounds the whole call.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

from roomai.config import settings
from roomai.errors import ProviderError
from roomai.models.contracts import GenerationOptions, GenerationResult, PromptInput
from roomai.services.prompt import render_prompt

logger = structlog.get_logger()

_TERMINAL = {"succeeded", "failed", "canceled"}


def _normalize_output(output: Any) -> list[str]:
    """Replicate models return either one URL or a list of them."""
    if isinstance(output, str):
        return [output] if output else []
    if isinstance(output, list):
        return [item for item in output if isinstance(item, str) and item]
    return []


class ReplicateBackend:
    name = "replicate"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        poll_interval: float | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = (
            settings.replicate_poll_interval_seconds if poll_interval is None else poll_interval
        )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        if not settings.replicate_api_token:
            raise ProviderError("Replicate API token is not configured", provider=self.name)
        async with httpx.AsyncClient(
            base_url=settings.replicate_base_url,
            headers={"Authorization": f"Bearer {settings.replicate_api_token}"},
            timeout=60,
        ) as client:
            yield client

    async def _request(
        self, client: httpx.AsyncClient, method: str, url: str, **kwargs: Any
    ) -> dict:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProviderError("Timeout calling Replicate", provider=self.name) from exc
        except httpx.RequestError as exc:
            raise ProviderError(
                f"Network error calling Replicate: {type(exc).__name__}", provider=self.name
            ) from exc

        if response.status_code >= 400:
            detail = response.text[:200]
            try:
                body = response.json()
                if isinstance(body, dict) and body.get("detail"):
                    detail = str(body["detail"])
            except ValueError:
                pass
            raise ProviderError(
                f"Replicate API error {response.status_code}: {detail}", provider=self.name
            )
        return response.json()

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        prompt = render_prompt(prompt_input)
        model_input: dict[str, Any] = {
            "prompt": prompt,
            "num_outputs": settings.replicate_num_outputs,
        }
        if options.input_image_url:
            model_input["image"] = options.input_image_url

        started = time.monotonic()
        async with self._session() as client:
            prediction = await self._request(
                client,
                "POST",
                f"/models/{settings.replicate_model}/predictions",
                json={"input": model_input},
                headers={"Prefer": "wait"},
            )
            polls = 0
            while prediction.get("status") not in _TERMINAL:
                get_url = (prediction.get("urls") or {}).get("get")
                if not get_url:
                    raise ProviderError(
                        "Replicate prediction has no polling URL", provider=self.name
                    )
                await asyncio.sleep(self._poll_interval)
                prediction = await self._request(client, "GET", get_url)
                polls += 1

        status = prediction.get("status")
        if status != "succeeded":
            message = prediction.get("error") or f"Replicate prediction {status}"
            logger.warning("replicate_prediction_failed", status=status, prediction_id=prediction.get("id"))
            raise ProviderError(str(message), provider=self.name)

        image_urls = _normalize_output(prediction.get("output"))
        if not image_urls:
            raise ProviderError("Replicate returned no images", provider=self.name)

        return GenerationResult(
            image_urls=image_urls,
            prompt=prompt,
            metadata={
                "provider": self.name,
                "model": settings.replicate_model,
                "predictionId": prediction.get("id"),
                "processingTime": int((time.monotonic() - started) * 1000),
                "parameters": {
                    "num_outputs": settings.replicate_num_outputs,
                    "polls": polls,
                },
                "inputImageUsed": options.input_image_url is not None,
            },
        )
