"""
Document ingestion: chunk, embed and store a completed document
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import CHUNK_SIZE, CHUNK_OVERLAP, EMBEDDING_MAX_ATTEMPTS
from core.errors import EmptyInput, Misconfigured, ServiceUnavailable, ServiceTimeout
from services.documents import get_document
from services.embeddings import EmbeddingClient
from services.vector_store import ChunkStore
from utils.chunking import chunk_text
from utils.logging import log


@dataclass
class IngestResult:
    document_id: str
    chunk_count: int


async def embed_with_retries(
    embedder: EmbeddingClient,
    chunks: List[str],
    max_attempts: int = EMBEDDING_MAX_ATTEMPTS
) -> List[List[float]]:
    """Embed all chunks, retrying the batch on transient failures only."""
    attempt = 1
    while True:
        try:
            return await embedder.embed_batch(chunks)
        except (ServiceUnavailable, ServiceTimeout) as e:
            if attempt >= max_attempts:
                raise
            log(f"   ⏸️  Embedding attempt {attempt}/{max_attempts} failed ({e}), retrying...")
            attempt += 1


async def ingest_document(
    session: AsyncSession,
    owner_id: str,
    document_id: str,
    embedder: Optional[EmbeddingClient],
    reindex: bool = False,
    max_chars: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP
) -> IngestResult:
    """
    Chunk a completed document, embed each chunk and upsert it.

    Chunks are keyed by (owner, document, index), so running this twice on
    the same text rewrites the same rows. ``reindex`` deletes all of the
    document's chunks first. Two concurrent runs on one document are not
    serialized: the last write per chunk index wins.

    Raises:
        NotFound: document missing, not owned by the caller, or not completed
        EmptyInput: the document has no text to index
        Misconfigured: no embedding client
    """
    doc = await get_document(session, owner_id, document_id, completed_only=True)

    text = (doc.extracted_text or "").strip()
    if not text:
        raise EmptyInput("No extracted text to ingest")

    if embedder is None:
        raise Misconfigured("Embedding service is not configured")

    store = ChunkStore(session)
    try:
        log(f"✂️  Chunking {doc.name} ({len(text):,} characters)...")
        chunks = chunk_text(text, max_chars, overlap)
        if not chunks:
            raise EmptyInput("No chunks produced from text")
        log(f"📊 Created {len(chunks)} chunks")

        log(f"🧠 Generating embeddings for {len(chunks)} chunks...")
        embeddings = await embed_with_retries(embedder, chunks)

        # Writes start only after every embedding is in hand
        if reindex:
            removed = await store.delete_all_for_document(owner_id, document_id)
            log(f"🗑️  Reindex: removed {removed} chunks of {doc.name}")

        log(f"💾 Saving chunks...")
        for index, (content, embedding) in enumerate(zip(chunks, embeddings)):
            await store.upsert(owner_id, document_id, index, content, embedding)
        stale = await store.delete_from_index(owner_id, document_id, len(chunks))
        if stale:
            log(f"🗑️  Removed {stale} stale chunks past index {len(chunks) - 1}")

        doc.chunk_count = len(chunks)
        doc.indexed_at = datetime.utcnow()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    log(f"✅ {doc.name} indexed successfully ({len(chunks)} chunks)")
    return IngestResult(document_id=document_id, chunk_count=len(chunks))
