"""
Utility functions for StudyMate
"""
from .logging import log, log_exception
from .chunking import chunk_text, normalize_text

__all__ = [
    "log",
    "log_exception",
    "chunk_text",
    "normalize_text",
]
