"""Shared fixtures: a throwaway SQLite database, seeded rooms, stub providers.

Settings are read at import time, so the environment is pinned here before
anything from ``roomai`` is imported.
"""

import asyncio
import os

os.environ.update(
    {
        "DATABASE_URL": "sqlite+aiosqlite://",
        "ENVIRONMENT": "test",
        "USE_MOCK_PROVIDERS": "false",
        "MOCK_GENERATION_DELAY": "0",
        "SWEEP_INTERVAL_SECONDS": "0",
        "R2_ACCOUNT_ID": "",
        "R2_ACCESS_KEY_ID": "",
        "R2_SECRET_ACCESS_KEY": "",
        "R2_PUBLIC_BASE_URL": "",
    }
)

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from roomai.database import get_db  # noqa: E402
from roomai.main import app  # noqa: E402
from roomai.models.contracts import (  # noqa: E402
    GenerationOptions,
    GenerationResult,
    PromptInput,
)
from roomai.models.db import Base, Project, Room  # noqa: E402
from roomai.providers.adapter import GenerationProviderAdapter  # noqa: E402
from roomai.services.generation_job import DesignGenerationJob  # noqa: E402

OWNER = "user-owner"
STRANGER = "user-stranger"


class StubBackend:
    """Records calls and returns canned image URLs, or raises ``error``."""

    def __init__(
        self,
        name: str = "stub",
        *,
        image_urls: list[str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.image_urls = image_urls or [
            "https://cdn.example.com/design_a.png",
            "https://cdn.example.com/design_b.png",
        ]
        self.error = error
        self.delay = delay
        self.calls: list[tuple[PromptInput, GenerationOptions]] = []

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        self.calls.append((prompt_input, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GenerationResult(
            image_urls=list(self.image_urls),
            prompt=f"effective prompt for {prompt_input.room_type}",
            metadata={"provider": options.provider, "model": "stub-model"},
        )


class BlockingBackend(StubBackend):
    """Holds every call until ``release`` is set, so intermediate states can be observed."""

    def __init__(self, name: str = "blocking") -> None:
        super().__init__(name)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate(
        self, prompt_input: PromptInput, options: GenerationOptions
    ) -> GenerationResult:
        self.calls.append((prompt_input, options))
        self.started.set()
        await self.release.wait()
        return GenerationResult(
            image_urls=list(self.image_urls),
            prompt="released prompt",
            metadata={"provider": options.provider},
        )


def make_adapter(backend: StubBackend) -> GenerationProviderAdapter:
    return GenerationProviderAdapter({"openai": backend, "replicate": backend}, use_mock=False)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'roomai.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


async def seed_room(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    user_id: str = OWNER,
    room_type: str = "LIVING_ROOM",
    style: str = "SCANDINAVIAN",
    room_name: str | None = "Main living room",
    project_name: str = "Apartment refresh",
    original_image_url: str | None = None,
) -> Room:
    async with session_factory() as session:
        project = Project(
            user_id=user_id, name=project_name, type="RESIDENTIAL", style=style
        )
        session.add(project)
        await session.flush()
        room = Room(
            project_id=project.id,
            name=room_name,
            type=room_type,
            length=5.0,
            width=4.0,
            height=2.7,
            materials=["oak floor", "linen"],
            ambient_color="warm white",
            original_image_url=original_image_url,
        )
        session.add(room)
        await session.commit()
        return room


@pytest.fixture
async def room(session_factory) -> Room:
    return await seed_room(session_factory)


@pytest.fixture
async def stranger_room(session_factory) -> Room:
    return await seed_room(session_factory, user_id=STRANGER, project_name="Someone else's")


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
async def job(session_factory, backend):
    job = DesignGenerationJob(session_factory, make_adapter(backend), timeout_seconds=0)
    yield job
    await job.drain(timeout=5)


@pytest.fixture
async def client(session_factory, job):
    """API client wired to the test database and the stub-backed job."""

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.state.generation_job = job
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return {"X-User-ID": OWNER}


@pytest.fixture
def stranger_headers() -> dict[str, str]:
    return {"X-User-ID": STRANGER}


