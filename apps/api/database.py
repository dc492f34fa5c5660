"""
Async database engine, session factory and FastAPI session dependency.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config import settings


def async_database_url(url: str) -> str:
    """Map plain postgres URLs onto the asyncpg driver."""
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    return url


class Base(DeclarativeBase):
    pass


engine = create_async_engine(async_database_url(settings.DATABASE_URL), pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session; the connection is released on every exit path."""
    async with async_session_maker() as session:
        yield session
