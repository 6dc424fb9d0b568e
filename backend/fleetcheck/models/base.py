"""
Database base configuration for SQLAlchemy models.

This module uses SQLAlchemy 2.0 style with DeclarativeBase and an async
engine. All request handlers receive an AsyncSession through get_db; the
record store opens its own short-lived sessions from AsyncSessionLocal so
that the per-source history queries can run concurrently.

Connection settings come from the environment (a local .env is loaded):
DATABASE_URL, DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_TIMEOUT,
DB_POOL_RECYCLE and DB_POOL_PRE_PING.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import AsyncAdaptedQueuePool
from typing import AsyncGenerator, Dict
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "postgresql://localhost:5432/fleetcheck_dev"

# Sync URL prefix -> async driver prefix
ASYNC_DRIVERS: Dict[str, str] = {
    "postgresql+asyncpg://": "postgresql+asyncpg://",
    "postgresql+psycopg2://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite+aiosqlite://": "sqlite+aiosqlite://",
    "sqlite://": "sqlite+aiosqlite://",
}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def to_async_url(url: str) -> str:
    """
    Rewrite a database URL to use an async driver.

    Plain string prefix replacement; make_url() round-trips can mangle
    hostnames containing underscores.

    Raises:
        ValueError: If the URL's scheme has no async driver mapping
    """
    for sync_prefix, async_prefix in ASYNC_DRIVERS.items():
        if url.startswith(sync_prefix):
            return async_prefix + url[len(sync_prefix) :]
    raise ValueError(
        f"No async driver mapping for DATABASE_URL prefix. "
        f"Supported prefixes: {list(ASYNC_DRIVERS.keys())}"
    )


DATABASE_URL = os.getenv("DATABASE_URL", "")
if not DATABASE_URL:
    if os.getenv("ENV", "development").lower() == "production":
        raise RuntimeError("DATABASE_URL is not set or is empty.")
    DATABASE_URL = DEFAULT_DATABASE_URL

ASYNC_DATABASE_URL = to_async_url(DATABASE_URL)

# Echo SQL in development only
DEBUG = _env_flag("DEBUG", "True")

if ASYNC_DATABASE_URL.startswith("sqlite"):
    # SQLite does not support the queue pool sizing arguments
    async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=DEBUG)
else:
    async_engine = create_async_engine(
        ASYNC_DATABASE_URL,
        echo=DEBUG,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=_env_int("DB_POOL_SIZE", 10),
        max_overflow=_env_int("DB_POOL_MAX_OVERFLOW", 20),
        pool_timeout=_env_int("DB_POOL_TIMEOUT", 30),
        pool_recycle=_env_int("DB_POOL_RECYCLE", 3600),
        pool_pre_ping=_env_flag("DB_POOL_PRE_PING", "True"),
    )

AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """
    SQLAlchemy 2.0 declarative base class with type annotation support.
    """

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async dependency function to get database session.

    Yields an async database session; the session is rolled back if the
    request handler raises.
    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
