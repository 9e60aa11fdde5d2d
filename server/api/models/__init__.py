"""
Database models and API schemas
"""
from .document import (
    Base,
    Document,
    Chunk,
    STATUS_UPLOADING,
    STATUS_PROCESSING,
    STATUS_COMPLETED,
    STATUS_ERROR,
)

__all__ = [
    "Base",
    "Document",
    "Chunk",
    "STATUS_UPLOADING",
    "STATUS_PROCESSING",
    "STATUS_COMPLETED",
    "STATUS_ERROR",
]
