"""Design generation job.

State machine for one design row::

    PENDING --task starts--> PROCESSING --provider ok--> COMPLETED
                                        --provider error--> FAILED

The request path creates and commits the PENDING row, then calls ``spawn``,
which schedules ``run_generation`` as a detached asyncio task and returns
at once. The task is wrapped in its own error boundary: whatever goes wrong
inside it ends up as ``status=FAILED`` on the row (best effort) and is never
re-raised. Each write uses a fresh session from the session factory, and this
job is the only writer of the design ids it spawns, so writes for one id are
strictly ordered.

No retry happens here. Clients regenerate, which creates a sibling row.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomai.config import settings
from roomai.models.contracts import GenerationOptions, GenerationResult, PromptInput, RoomSnapshot
from roomai.models.db import Design
from roomai.providers.adapter import GenerationProviderAdapter
from roomai.repositories.designs import DesignRepository
from roomai.services.prompt import build_prompt_input

logger = structlog.get_logger()

DEFAULT_FAILURE_MESSAGE = "Design generation failed"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class DesignGenerationJob:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        provider: GenerationProviderAdapter,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._provider = provider
        timeout = settings.generation_timeout_seconds if timeout_seconds is None else timeout_seconds
        self._timeout = timeout if timeout > 0 else None
        # Strong references so running tasks are not garbage-collected
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def spawn(
        self,
        design_id: uuid.UUID,
        snapshot: RoomSnapshot,
        custom_prompt: str | None,
        provider: str,
        *,
        prompt_override: str | None = None,
    ) -> None:
        """Schedule generation for a committed PENDING design; does not wait for it."""
        coro = self._run_guarded(
            design_id, snapshot, custom_prompt, provider, prompt_override=prompt_override
        )
        try:
            task = asyncio.create_task(coro, name=f"design-generation-{design_id}")
        except Exception as exc:
            coro.close()
            logger.exception("design_generation_dispatch_failed", design_id=str(design_id))
            await self.record_failure(design_id, str(exc) or DEFAULT_FAILURE_MESSAGE)
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight generations; cancel whatever is left after ``timeout``."""
        if not self._tasks:
            return
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("design_generation_tasks_cancelled", count=len(pending))

    async def _write(self, op: Callable[[DesignRepository], Awaitable[Design]]) -> Design:
        async with self._session_factory() as session:
            design = await op(DesignRepository(session))
            await session.commit()
            return design

    async def _run_guarded(
        self,
        design_id: uuid.UUID,
        snapshot: RoomSnapshot,
        custom_prompt: str | None,
        provider: str,
        *,
        prompt_override: str | None = None,
    ) -> None:
        try:
            await self.run_generation(
                design_id, snapshot, custom_prompt, provider, prompt_override=prompt_override
            )
        except Exception as exc:
            logger.exception("design_generation_task_failed", design_id=str(design_id))
            await self.record_failure(design_id, str(exc) or DEFAULT_FAILURE_MESSAGE)

    async def record_failure(self, design_id: uuid.UUID, message: str) -> None:
        """Best-effort FAILED write. If it fails too, the row keeps its last state."""
        try:
            await self._write(lambda repo: repo.mark_failed(design_id, error=message))
        except Exception:
            logger.exception("design_failure_record_failed", design_id=str(design_id))

    async def _call_provider(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        call = self._provider.generate(prompt_input, options)
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError as exc:
            raise TimeoutError(f"Design generation timed out after {self._timeout:g}s") from exc

    async def run_generation(
        self,
        design_id: uuid.UUID,
        snapshot: RoomSnapshot,
        custom_prompt: str | None,
        provider: str,
        *,
        prompt_override: str | None = None,
    ) -> None:
        prompt_input = build_prompt_input(snapshot, custom_prompt, prompt_override=prompt_override)
        options = GenerationOptions(
            provider=provider,  # type: ignore[arg-type]
            input_image_url=snapshot.original_image_url,
        )
        log = logger.bind(design_id=str(design_id), provider=provider)

        started = time.monotonic()
        await self._write(lambda repo: repo.mark_processing(design_id))
        log.info("design_generation_processing")

        try:
            result = await self._call_provider(prompt_input, options)
        except Exception as exc:
            processing_time = _elapsed_ms(started)
            message = str(exc) or "Unknown error"
            log.warning(
                "design_generation_failed",
                error=message,
                error_type=type(exc).__name__,
                processing_time=processing_time,
            )
            await self._write(
                lambda repo: repo.mark_failed(
                    design_id, error=message, processing_time=processing_time
                )
            )
            return

        processing_time = _elapsed_ms(started)
        await self._write(
            lambda repo: repo.mark_completed(
                design_id,
                image_url=result.image_urls[0],
                prompt=result.prompt,
                metadata={**result.metadata, "allImageUrls": list(result.image_urls)},
                processing_time=processing_time,
            )
        )
        log.info(
            "design_generation_completed",
            processing_time=processing_time,
            image_count=len(result.image_urls),
        )
