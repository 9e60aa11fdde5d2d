"""
Shared fixtures: a throwaway SQLite database and fake model clients
"""
import asyncio
import os

# Must be set before the models are imported
os.environ["EMBEDDING_DIM"] = "4"
os.environ["API_SECRET_KEY"] = "change-me-in-production"

import httpx
import pytest
import pytest_asyncio

from core import database
from models.document import Document, STATUS_COMPLETED
from services.embeddings import EmbeddingClient
from services.generation import TextGenerator

VOCABULARY = ["photosynthesis", "mitochondria", "revolution", "algebra"]


class FakeEmbedder(EmbeddingClient):
    """Counts vocabulary words, so texts about the same topic point the same way."""

    def __init__(self, concurrency: int = 1, delay: float = 0.0):
        super().__init__(dimension=len(VOCABULARY), concurrency=concurrency)
        self.delay = delay
        self.calls = []
        self.failures = []
        self.active = 0
        self.max_active = 0

    async def _embed(self, text):
        self.calls.append(text)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.failures:
                raise self.failures.pop(0)
            lowered = text.lower()
            return [float(lowered.count(word)) for word in VOCABULARY]
        finally:
            self.active -= 1


class FakeGenerator(TextGenerator):
    """Returns canned replies and remembers every prompt."""

    def __init__(self, reply: str = '{"answer": "fake answer", "citations": []}'):
        self.reply = reply
        self.error = None
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest_asyncio.fixture
async def db(tmp_path):
    await database.init_db(f"sqlite+aiosqlite:///{tmp_path / 'studymate.db'}")
    yield database
    await database.close_db()


@pytest_asyncio.fixture
async def session(db):
    async with db.async_session() as session:
        yield session


@pytest_asyncio.fixture
async def add_document(db):
    """Create a document directly in the database and return it."""

    async def _add(owner_id="alice", name="Biology", text="", status=STATUS_COMPLETED):
        async with db.async_session() as session:
            doc = Document(
                owner_id=owner_id,
                name=name,
                filename=f"{name}.txt",
                file_size=len(text),
                status=status,
                extracted_text=text
            )
            session.add(doc)
            await session.commit()
            return doc

    return _add


@pytest_asyncio.fixture
async def api(db, embedder, generator):
    from main import app

    app.state.embedder = embedder
    app.state.generator = generator
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
