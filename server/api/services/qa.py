"""
Retrieval-augmented question answering over a user's documents
"""
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import EmptyInput, Misconfigured
from services.answer import Answer, AnswerSynthesizer
from services.context import assemble_chunk_context, assemble_document_context
from services.documents import list_completed_documents
from services.embeddings import EmbeddingClient
from services.generation import TextGenerator
from services.ranking import RankedChunk, clamp_top_k, rank_chunks
from services.vector_store import ChunkStore
from utils.logging import log


async def search_similar_chunks(
    session: AsyncSession,
    owner_id: str,
    query: str,
    embedder: Optional[EmbeddingClient],
    document_ids: Optional[List[str]] = None,
    top_k: Optional[int] = None
) -> Tuple[List[RankedChunk], Dict[str, str]]:
    """
    Rank the owner's stored chunks against ``query``.

    Returns:
        (ranked chunks, document id -> name) for the completed documents in scope
    """
    docs = await list_completed_documents(session, owner_id, document_ids)
    names = {doc.id: doc.name for doc in docs}
    chunks = await ChunkStore(session).list_by_documents(owner_id, names.keys())
    if not chunks:
        return [], names

    if embedder is None:
        raise Misconfigured("Embedding service is not configured")

    query_embedding = await embedder.embed(query)
    return rank_chunks(query_embedding, chunks, top_k), names


async def answer_question(
    session: AsyncSession,
    owner_id: str,
    question: str,
    embedder: Optional[EmbeddingClient],
    generator: Optional[TextGenerator],
    document_ids: Optional[List[str]] = None,
    top_k: Optional[int] = None
) -> Answer:
    """
    Answer a question from the owner's completed documents.

    - no documents in scope: the model answers without context, no citations
    - documents but no chunks: raw extracted text (truncated) is the context
    - chunks: the query is embedded once and the top ``top_k`` chunks are the
      context; if the model cites nothing, the top chunks become citations
    """
    question = (question or "").strip()
    if not question:
        raise EmptyInput("Question is required")
    if generator is None:
        raise Misconfigured("Generation service is not configured")

    synthesizer = AnswerSynthesizer(generator)

    docs = await list_completed_documents(session, owner_id, document_ids)
    if not docs:
        log(f"💬 No completed documents for {owner_id}, answering without context")
        return await synthesizer.answer(question, "", with_documents=False)

    names: Dict[str, str] = {doc.id: doc.name for doc in docs}
    chunks = await ChunkStore(session).list_by_documents(owner_id, names.keys())

    if not chunks:
        context, used = assemble_document_context(docs)
        log(f"💬 No chunks for {len(docs)} documents, using raw text of {len(used)}")
        return await synthesizer.answer(question, context, document_names=names)

    if embedder is None:
        raise Misconfigured("Embedding service is not configured")

    query_embedding = await embedder.embed(question)
    ranked: List[RankedChunk] = rank_chunks(query_embedding, chunks, top_k)
    log(f"🔍 Ranked {len(chunks)} chunks, using top {len(ranked)} (topK={clamp_top_k(top_k)})")

    context = assemble_chunk_context(ranked, names)
    return await synthesizer.answer(question, context, ranked=ranked, document_names=names)
