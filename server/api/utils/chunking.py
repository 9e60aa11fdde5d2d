"""
Text chunking utilities
"""
import re
from typing import List
from core.config import CHUNK_SIZE, CHUNK_OVERLAP

_WHITESPACE = re.compile(r"\s+")

# A period only counts as a cut point past this share of the window
SENTENCE_SNAP_RATIO = 0.6


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


def chunk_text(text: str, max_chars: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> List[str]:
    """
    Split text into overlapping chunks, preferring to cut after a period.

    The sentence snap only moves a cut point backward, so no chunk is longer
    than ``max_chars``. Text without periods is hard-cut at ``max_chars``.

    Args:
        text: Text to chunk (normalized first)
        max_chars: Maximum size of each chunk
        overlap: Number of characters shared by consecutive chunks

    Returns:
        List of text chunks, empty for blank input
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    overlap = min(max(overlap, 0), max_chars - 1)

    cleaned = normalize_text(text)
    if not cleaned:
        return []

    length = len(cleaned)
    chunks = []
    start = 0

    while start < length:
        end = min(start + max_chars, length)

        if end < length:
            period = cleaned.rfind(".", start, end)
            if period > start + max_chars * SENTENCE_SNAP_RATIO:
                end = period + 1

        piece = cleaned[start:end].strip()
        if piece:
            chunks.append(piece)

        if end == length:
            break
        start = max(end - overlap, start + 1)

    return chunks
