"""
Core configuration and dependencies
"""
from .config import *
from .database import init_db, get_session, close_db
from .deps import verify_api_key, get_owner_id, get_embedder, get_generator
from .errors import (
    StudyMateError,
    Unauthorized,
    NotFound,
    BadRequest,
    EmptyInput,
    Misconfigured,
    UpstreamFailure,
    ServiceUnavailable,
    ServiceTimeout,
)

__all__ = [
    # Config
    "ANTHROPIC_API_KEY",
    "API_SECRET_KEY",
    "DATABASE_URL",
    "MAX_FILE_SIZE_MB",
    "SUPPORTED_EXTENSIONS",
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "EMBEDDING_BACKEND",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIM",
    "EMBEDDING_API_URL",
    "EMBEDDING_API_KEY",
    "EMBEDDING_TIMEOUT",
    "EMBEDDING_CONCURRENCY",
    "EMBEDDING_MAX_ATTEMPTS",
    "GENERATION_MODEL",
    "GENERATION_MAX_TOKENS",
    "GENERATION_TIMEOUT",
    "QA_DEFAULT_TOP_K",
    "QA_MAX_TOP_K",
    "MAX_CITATIONS",
    "CITATION_SNIPPET_CHARS",
    "FALLBACK_MAX_DOCUMENTS",
    "FALLBACK_MAX_CHARS_PER_DOCUMENT",
    "TRUNCATION_MARKER",
    # Database
    "init_db",
    "get_session",
    "close_db",
    # Dependencies
    "verify_api_key",
    "get_owner_id",
    "get_embedder",
    "get_generator",
    # Errors
    "StudyMateError",
    "Unauthorized",
    "NotFound",
    "BadRequest",
    "EmptyInput",
    "Misconfigured",
    "UpstreamFailure",
    "ServiceUnavailable",
    "ServiceTimeout",
]
