"""
Database models for documents and chunks
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from pgvector.sqlalchemy import Vector
from core.config import EMBEDDING_DIM

Base = declarative_base()

# Document processing states
STATUS_UPLOADING = "uploading"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"


def _new_id() -> str:
    return str(uuid.uuid4())


class Document(Base):
    """User-owned document and its extracted text."""
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(128), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    filename = Column(String(500), nullable=False)
    file_hash = Column(String(64), nullable=True)
    file_size = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(200), nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_UPLOADING, index=True)
    extracted_text = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    chunk_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime, nullable=True)
    indexed_at = Column(DateTime, nullable=True)


class Chunk(Base):
    """Document chunks with embeddings."""
    __tablename__ = "chunks"
    __table_args__ = (
        UniqueConstraint("owner_id", "document_id", "chunk_index", name="uq_chunks_owner_document_index"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(128), nullable=False, index=True)
    document_id = Column(String(36), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIM))
    tokens = Column(Integer, nullable=False, default=0)  # character count of content
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
