"""
Prompt context assembly from ranked chunks or raw document text
"""
from typing import List, Mapping, Sequence, Tuple

from core.config import FALLBACK_MAX_DOCUMENTS, FALLBACK_MAX_CHARS_PER_DOCUMENT, TRUNCATION_MARKER
from services.ranking import RankedChunk

# Chunk content is whitespace-normalized, so it never contains this newline-framed line
CONTEXT_SEPARATOR = "\n\n---\n\n"


def truncate(text: str, limit: int, marker: str = TRUNCATION_MARKER) -> str:
    """Cut ``text`` to ``limit`` characters and append ``marker`` if anything was dropped."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def document_name(document_names: Mapping[str, str], document_id: str) -> str:
    return document_names.get(str(document_id)) or str(document_id)


def assemble_chunk_context(ranked: Sequence[RankedChunk], document_names: Mapping[str, str]) -> str:
    """Render ranked chunks as numbered blocks attributed to their document."""
    parts = []
    for i, item in enumerate(ranked, 1):
        name = document_name(document_names, item.chunk.document_id)
        parts.append(f"Chunk {i} (doc: {name}):\n{item.chunk.content}")
    return CONTEXT_SEPARATOR.join(parts)


def assemble_document_context(
    documents: Sequence,
    max_documents: int = FALLBACK_MAX_DOCUMENTS,
    max_chars: int = FALLBACK_MAX_CHARS_PER_DOCUMENT
) -> Tuple[str, List[str]]:
    """
    Build context from raw extracted text for documents that were never chunked.

    Documents without text are skipped. At most ``max_documents`` are used and
    each is truncated to ``max_chars``.

    Returns:
        (context string, names of the documents included)
    """
    parts = []
    names = []
    for doc in documents:
        raw = doc.extracted_text or ""
        if not raw.strip():
            continue
        names.append(doc.name)
        parts.append(f"Document {len(names)}: {doc.name}\n{truncate(raw, max_chars)}")
        if len(names) >= max_documents:
            break
    return CONTEXT_SEPARATOR.join(parts), names
