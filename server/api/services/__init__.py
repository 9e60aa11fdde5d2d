"""
Business logic services for StudyMate
"""
from .embeddings import EmbeddingClient, create_embedding_client
from .generation import TextGenerator, create_generator
from .documents import (
    create_document, get_document, list_documents, count_documents, update_text, delete_document
)
from .ingestion import ingest_document
from .qa import answer_question, search_similar_chunks
from .vector_store import ChunkStore

__all__ = [
    "EmbeddingClient",
    "create_embedding_client",
    "TextGenerator",
    "create_generator",
    "create_document",
    "get_document",
    "list_documents",
    "count_documents",
    "update_text",
    "delete_document",
    "ingest_document",
    "answer_question",
    "search_similar_chunks",
    "ChunkStore",
]
