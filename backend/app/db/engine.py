"""Database engine and session factory."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from backend.app.config import Settings, get_settings


def normalize_async_url(database_url: str) -> str:
    """Map sync driver URLs onto their async drivers."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def create_async_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    if not settings.database_url:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )

    return create_async_engine(
        normalize_async_url(settings.database_url), pool_pre_ping=True, echo=False
    )


_async_engine: AsyncEngine | None = None


def get_async_engine() -> AsyncEngine:
    """Get global async engine instance."""
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_engine_from_settings(get_settings())
    return _async_engine


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for async database session.

    Yields:
        AsyncSession instance
    """
    async with AsyncSession(get_async_engine(), expire_on_commit=False) as session:
        yield session
