"""
Chunk storage keyed by (owner, document, chunk index)
"""
from datetime import datetime
from typing import Iterable, List, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from models.document import Chunk

_UNIQUE_KEY = ["owner_id", "document_id", "chunk_index"]


class ChunkStore:
    """
    Persists chunks and their embeddings.

    Every query is filtered by owner. The store never commits: the caller
    owns the transaction, so an ingestion run is applied all at once or not
    at all.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(Chunk)
        if dialect == "sqlite":
            return sqlite.insert(Chunk)
        raise RuntimeError(f"Chunk upsert not supported on {dialect}")

    async def upsert(
        self,
        owner_id: str,
        document_id: str,
        chunk_index: int,
        content: str,
        embedding: Sequence[float]
    ):
        """Insert a chunk, or replace content and embedding if the key exists."""
        now = datetime.utcnow()
        stmt = self._insert().values(
            owner_id=owner_id,
            document_id=document_id,
            chunk_index=chunk_index,
            content=content,
            embedding=list(embedding),
            tokens=len(content),
            created_at=now,
            updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=_UNIQUE_KEY,
            set_={
                "content": stmt.excluded.content,
                "embedding": stmt.excluded.embedding,
                "tokens": stmt.excluded.tokens,
                "updated_at": stmt.excluded.updated_at,
            }
        )
        await self.session.execute(stmt)

    async def delete_all_for_document(self, owner_id: str, document_id: str) -> int:
        result = await self.session.execute(
            delete(Chunk).where(Chunk.owner_id == owner_id, Chunk.document_id == document_id)
        )
        return result.rowcount or 0

    async def delete_from_index(self, owner_id: str, document_id: str, first_stale_index: int) -> int:
        """Drop chunks at or past ``first_stale_index`` (leftovers of a longer text)."""
        result = await self.session.execute(
            delete(Chunk).where(
                Chunk.owner_id == owner_id,
                Chunk.document_id == document_id,
                Chunk.chunk_index >= first_stale_index
            )
        )
        return result.rowcount or 0

    async def list_by_documents(self, owner_id: str, document_ids: Iterable[str]) -> List[Chunk]:
        """All chunks of the given documents, in document then index order."""
        ids = list(dict.fromkeys(document_ids))
        if not ids:
            return []

        result = await self.session.execute(
            select(Chunk)
            .where(Chunk.owner_id == owner_id, Chunk.document_id.in_(ids))
            .order_by(Chunk.document_id, Chunk.chunk_index)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count(self, owner_id: str, document_id: str = None) -> int:
        query = select(func.count(Chunk.id)).where(Chunk.owner_id == owner_id)
        if document_id is not None:
            query = query.where(Chunk.document_id == document_id)
        return await self.session.scalar(query) or 0
