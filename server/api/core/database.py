"""
Database engine and session management
"""
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import text
from core.config import DATABASE_URL
from utils.logging import log

# Global instances
engine = None
async_session = None


async def init_db(database_url: Optional[str] = None):
    """Initialize database and create tables."""
    global engine, async_session
    from models.document import Base

    engine = create_async_engine(database_url or DATABASE_URL, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            # Create pgvector extension
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        # Create tables
        await conn.run_sync(Base.metadata.create_all)

    log(f"✅ Database initialized ({engine.dialect.name})")


async def get_session() -> AsyncSession:
    """Dependency for getting database session."""
    async with async_session() as session:
        yield session


async def close_db():
    """Close database connections."""
    global engine
    if engine:
        await engine.dispose()
        engine = None
        log("🔌 Database connections closed")
