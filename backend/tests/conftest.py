"""Shared test fixtures for the JensenGPT backend."""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from jensengpt.database import build_engine, build_session_factory, get_session_factory, init_db
from jensengpt.dependencies import get_llm_service
from jensengpt.exceptions import LLMServiceError
from jensengpt.main import create_app
from jensengpt.services.cache_service import ResponseCache
from jensengpt.utils.locks import KeyedLocks


class FakeStream:
    """Scripted provider stream; fails before chunk ``fail_at`` when set."""

    def __init__(self, chunks, fail_at=None):
        self.chunks = chunks
        self.fail_at = fail_at
        self.closed = False

    def __aiter__(self):
        return self._deltas()

    async def _deltas(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_at == index:
                raise LLMServiceError("Provider stream failed: connection reset")
            yield chunk
        if self.fail_at is not None and self.fail_at >= len(self.chunks):
            raise LLMServiceError("Provider stream failed: connection reset")

    async def close(self):
        self.closed = True


class FakeLLM:
    """Stand-in for LLMService that records every call."""

    model_id = "test-model"

    def __init__(self):
        self.chunks = ["Hel", "lo, ", "world"]
        self.fail_at = None
        self.fail_on_open = False
        self.calls = []
        self.streams = []

    async def open_stream(self, messages, model_id=None):
        self.calls.append({"messages": messages, "model_id": model_id})
        if self.fail_on_open:
            raise LLMServiceError("Failed to reach the model provider: connection refused")
        stream = FakeStream(list(self.chunks), self.fail_at)
        self.streams.append(stream)
        return stream

    async def list_models(self):
        return [{"id": self.model_id, "owned_by": "test", "created": None}]

    async def explain_step(self, step_content, question, model_id=None):
        return f"About '{step_content}': {question}"


def parse_ndjson(text):
    return [json.loads(line) for line in text.splitlines() if line.strip()]


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test; every session shares its one connection."""
    engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def cache():
    return ResponseCache()


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def app(session_factory, fake_llm):
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def chat(client):
    """POST /api/chat and return (response, parsed records)."""
    async def send(message, **options):
        payload = {"message": message, **options}
        response = await client.post("/api/chat", json=payload)
        records = parse_ndjson(response.text) if response.status_code == 200 else []
        return response, records
    return send


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """File database with the server's pooling, one connection per session."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'jensengpt.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def file_session_factory(file_engine):
    return build_session_factory(file_engine)


@pytest_asyncio.fixture
async def file_client(file_session_factory, fake_llm):
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: file_session_factory
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
