import pytest

from core.errors import EmptyInput, Misconfigured, NotFound, ServiceUnavailable
from models.document import Document, STATUS_PROCESSING
from services.ingestion import ingest_document
from services.vector_store import ChunkStore

from conftest import FakeEmbedder

LONG_TEXT = " ".join(
    f"Paragraph {i} explains photosynthesis and how mitochondria turn sugar into energy." for i in range(60)
)


async def test_ingest_creates_chunks(session, add_document, embedder):
    doc = await add_document(text=LONG_TEXT)

    result = await ingest_document(session, "alice", doc.id, embedder)

    chunks = await ChunkStore(session).list_by_documents("alice", [doc.id])
    assert result.chunk_count == len(chunks) > 1
    assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
    assert all(len(c.content) <= 1200 for c in chunks)
    assert len(embedder.calls) == len(chunks)

    stored = await session.get(Document, doc.id)
    assert stored.chunk_count == result.chunk_count
    assert stored.indexed_at is not None


async def test_ingesting_twice_does_not_duplicate(session, add_document, embedder):
    doc = await add_document(text=LONG_TEXT)

    first = await ingest_document(session, "alice", doc.id, embedder)
    second = await ingest_document(session, "alice", doc.id, embedder)

    assert first.chunk_count == second.chunk_count
    assert await ChunkStore(session).count("alice", doc.id) == first.chunk_count


async def test_shorter_text_drops_stale_chunks(session, add_document, embedder):
    doc = await add_document(text=LONG_TEXT)
    await ingest_document(session, "alice", doc.id, embedder)

    stored = await session.get(Document, doc.id)
    stored.extracted_text = "Now only a short note about algebra."
    await session.commit()
    result = await ingest_document(session, "alice", doc.id, embedder)

    chunks = await ChunkStore(session).list_by_documents("alice", [doc.id])
    assert result.chunk_count == 1
    assert [c.content for c in chunks] == ["Now only a short note about algebra."]


async def test_reindex_clears_previous_chunks(session, add_document, embedder):
    doc = await add_document(text=LONG_TEXT)
    store = ChunkStore(session)
    await store.upsert("alice", doc.id, 999, "orphan", [1, 0, 0, 0])
    await session.commit()

    await ingest_document(session, "alice", doc.id, embedder, reindex=True)

    contents = [c.content for c in await store.list_by_documents("alice", [doc.id])]
    assert "orphan" not in contents


async def test_other_owners_document_is_not_found(session, add_document, embedder):
    doc = await add_document(owner_id="bob", text=LONG_TEXT)

    with pytest.raises(NotFound):
        await ingest_document(session, "alice", doc.id, embedder)


async def test_incomplete_document_is_not_found(session, add_document, embedder):
    doc = await add_document(text=LONG_TEXT, status=STATUS_PROCESSING)

    with pytest.raises(NotFound):
        await ingest_document(session, "alice", doc.id, embedder)


async def test_document_without_text_is_rejected(session, add_document, embedder):
    doc = await add_document(text="   ")

    with pytest.raises(EmptyInput):
        await ingest_document(session, "alice", doc.id, embedder)


async def test_missing_embedder_is_misconfigured(session, add_document):
    doc = await add_document(text=LONG_TEXT)

    with pytest.raises(Misconfigured):
        await ingest_document(session, "alice", doc.id, None)


async def test_transient_failure_is_retried(session, add_document):
    embedder = FakeEmbedder()
    embedder.failures = [ServiceUnavailable(internal="blip")]
    doc = await add_document(text="Short text on the revolution.")

    result = await ingest_document(session, "alice", doc.id, embedder)

    assert result.chunk_count == 1


async def test_persistent_failure_writes_nothing(session, add_document):
    embedder = FakeEmbedder()
    embedder.failures = [ServiceUnavailable(internal="down")] * 5
    doc = await add_document(text=LONG_TEXT)

    with pytest.raises(ServiceUnavailable):
        await ingest_document(session, "alice", doc.id, embedder)

    assert await ChunkStore(session).count("alice") == 0


async def test_failed_reindex_keeps_previous_chunks(session, add_document):
    embedder = FakeEmbedder()
    doc = await add_document(text="Short text on the revolution.")
    await ingest_document(session, "alice", doc.id, embedder)

    embedder.failures = [ServiceUnavailable(internal="down")] * 5
    with pytest.raises(ServiceUnavailable):
        await ingest_document(session, "alice", doc.id, embedder, reindex=True)

    chunks = await ChunkStore(session).list_by_documents("alice", [doc.id])
    assert [c.content for c in chunks] == ["Short text on the revolution."]
