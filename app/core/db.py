import asyncio
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings


def to_async_url(database_url: str) -> str:
    """Map a plain database URL onto its async driver.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so they are
    stripped; SSL is requested through connect_args instead.
    """
    parsed = urlparse(database_url)
    if parsed.scheme == "sqlite":
        # urlunparse would collapse the empty host of sqlite:///path
        return "sqlite+aiosqlite" + database_url[len("sqlite"):]
    if parsed.scheme not in ("postgres", "postgresql"):
        return database_url
    scheme = "postgresql+asyncpg"
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


def _wants_ssl(database_url: str) -> bool:
    query = parse_qs(urlparse(database_url).query)
    return query.get("sslmode", [""])[0] in ("require", "verify-ca", "verify-full")


def build_engine(database_url: str) -> AsyncEngine:
    async_url = to_async_url(database_url)
    if async_url.startswith("postgresql+asyncpg"):
        return create_async_engine(
            async_url,
            echo=settings.env == "development",
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            connect_args={"ssl": True} if _wants_ssl(database_url) else {},
        )
    return create_async_engine(async_url, echo=settings.env == "development")


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def probe_database(engine: AsyncEngine, timeout: float) -> None:
    """Raise if the database cannot be reached within `timeout` seconds."""

    async def _ping() -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    await asyncio.wait_for(_ping(), timeout=timeout)


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
