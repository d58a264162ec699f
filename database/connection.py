"""
Database connection and session management
"""

from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from utils import settings
from utils.errors import StorageError

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.is_development(),
    future=True,
)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Create declarative base
Base = declarative_base()


# Dependency to get database session
async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def persisting(db: AsyncSession, action: str):
    """
    Translate persistence failures inside the block into StorageError,
    rolling the session back first
    """
    try:
        yield db
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError(f"Storage failure while {action}: {e}") from e


def sessions_like(db: AsyncSession) -> async_sessionmaker:
    """Session factory on the same engine as an existing session"""
    return async_sessionmaker(db.bind, class_=AsyncSession, expire_on_commit=False)
