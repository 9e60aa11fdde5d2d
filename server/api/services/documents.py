"""
Owner-scoped document records: upload, lookup, text edits and deletion
"""
import hashlib
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import MAX_FILE_SIZE_MB, SUPPORTED_EXTENSIONS
from core.errors import BadRequest, NotFound
from models.document import Document, STATUS_PROCESSING, STATUS_COMPLETED, STATUS_ERROR
from services.extraction import ExtractionError, extract_text
from services.vector_store import ChunkStore
from utils.logging import log


async def get_document(
    session: AsyncSession,
    owner_id: str,
    document_id: str,
    completed_only: bool = False
) -> Document:
    """Fetch one of the owner's documents or raise NotFound."""
    query = select(Document).where(Document.id == document_id, Document.owner_id == owner_id)
    if completed_only:
        query = query.where(Document.status == STATUS_COMPLETED)
    doc = (await session.execute(query)).scalar_one_or_none()
    if not doc:
        raise NotFound()
    return doc


async def list_documents(session: AsyncSession, owner_id: str) -> List[Document]:
    result = await session.execute(
        select(Document).where(Document.owner_id == owner_id).order_by(Document.created_at.desc())
    )
    return list(result.scalars().all())


async def list_completed_documents(
    session: AsyncSession,
    owner_id: str,
    document_ids: Optional[Iterable[str]] = None
) -> List[Document]:
    """Owner's completed documents, newest first; restricted to ``document_ids`` when given."""
    query = select(Document).where(Document.owner_id == owner_id, Document.status == STATUS_COMPLETED)
    ids = [str(i) for i in document_ids or [] if i]
    if ids:
        query = query.where(Document.id.in_(ids))
    result = await session.execute(query.order_by(Document.created_at.desc()))
    return list(result.scalars().all())


async def count_documents(session: AsyncSession, owner_id: str) -> int:
    return await session.scalar(
        select(func.count(Document.id)).where(Document.owner_id == owner_id)
    ) or 0


async def create_document(
    session: AsyncSession,
    owner_id: str,
    filename: str,
    content: bytes,
    name: Optional[str] = None
) -> Document:
    """
    Store an upload and extract its text.

    The record moves from ``processing`` to ``completed``, or to ``error``
    with the reason in ``error_message``. Uploading the same bytes again
    returns the existing record, unless that record is in ``error``: then
    extraction runs again on it.
    """
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise BadRequest(f"Unsupported file type: {ext}. Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}")

    file_size = len(content)
    if file_size > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise BadRequest(f"File too large. Max size: {MAX_FILE_SIZE_MB}MB")

    file_hash = hashlib.sha256(content).hexdigest()
    existing = (await session.execute(
        select(Document).where(Document.owner_id == owner_id, Document.file_hash == file_hash)
    )).scalars().first()
    if existing and existing.status != STATUS_ERROR:
        log(f"📄 {filename} already uploaded as {existing.id}")
        return existing

    if existing:
        # Same bytes failed before, extract again into the same record
        log(f"🔁 Retrying extraction of {filename} ({existing.id})")
        doc = existing
        doc.name = name or doc.name
        doc.filename = filename
        doc.status = STATUS_PROCESSING
        doc.error_message = None
    else:
        doc = Document(
            owner_id=owner_id,
            name=name or Path(filename).stem,
            filename=filename,
            file_hash=file_hash,
            file_size=file_size,
            mime_type=mimetypes.guess_type(filename)[0] or "application/octet-stream",
            status=STATUS_PROCESSING
        )
        session.add(doc)
    await session.flush()

    log(f"📄 Extracting text from {filename} ({file_size / 1024:.1f}KB)...")
    try:
        text = extract_text(content, filename)
    except ExtractionError as e:
        text = ""
        doc.error_message = str(e)

    if text.strip():
        doc.extracted_text = text
        doc.status = STATUS_COMPLETED
        log(f"✅ Extracted {len(text):,} characters from {filename}")
    else:
        doc.status = STATUS_ERROR
        doc.error_message = doc.error_message or "No text could be extracted"
        log(f"❌ Extraction failed for {filename}: {doc.error_message}")
    doc.processed_at = datetime.utcnow()

    await session.commit()
    return doc


async def update_text(session: AsyncSession, owner_id: str, document_id: str, text: str) -> Document:
    """Replace a document's extracted text. Existing chunks stay until a reindex."""
    doc = await get_document(session, owner_id, document_id)
    doc.extracted_text = text
    if text.strip() and doc.status == STATUS_ERROR:
        doc.status = STATUS_COMPLETED
        doc.error_message = None
    await session.commit()
    log(f"✏️  Updated text of {doc.name} ({len(text):,} characters)")
    return doc


async def delete_document(session: AsyncSession, owner_id: str, document_id: str):
    """Delete a document and its chunks."""
    doc = await get_document(session, owner_id, document_id)
    removed = await ChunkStore(session).delete_all_for_document(owner_id, document_id)
    await session.delete(doc)
    await session.commit()
    log(f"🗑️  Deleted: {doc.name} ({removed} chunks)")
