"""
Database engine, session factory and identity binding for the hosted PostgreSQL catalog.
"""

from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse, urlunparse

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from storefront.src.core.config import settings
from storefront.src.core.logging import get_logger

logger = get_logger(__name__)

# Base class for ORM models
Base = declarative_base()


def to_async_url(database_url: str) -> Tuple[str, Dict[str, Any]]:
    """
    Convert a plain connection string into an async driver URL.

    SSL query parameters are not understood by asyncpg, so they are
    stripped from the URL and translated into connect arguments.

    Args:
        database_url: Connection string from configuration

    Returns:
        Tuple of (async URL, connect_args)
    """
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1), {}

    if not database_url.startswith(("postgresql://", "postgres://")):
        # Already carries an explicit driver, e.g. postgresql+asyncpg://
        return database_url, {}

    parsed = urlparse(database_url)
    query_params = parse_qs(parsed.query)

    connect_args: Dict[str, Any] = {
        "server_settings": {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)},
    }
    if "sslmode" in query_params:
        sslmode = query_params["sslmode"][0]
        if sslmode in ("require", "prefer", "allow"):
            connect_args["ssl"] = True
        elif sslmode == "disable":
            connect_args["ssl"] = False

    # Remove all query parameters from URL and convert to asyncpg
    clean_url = urlunparse(parsed._replace(scheme="postgresql+asyncpg", query=""))
    return clean_url, connect_args


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """
    Create the asynchronous engine used for catalog queries.

    Args:
        database_url: Connection string from configuration

    Returns:
        AsyncEngine bound to the database
    """
    url, connect_args = to_async_url(database_url)

    options: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.DEBUG,
        "connect_args": connect_args,
    }
    if url.startswith("postgresql+asyncpg"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=3600,
        )

    engine = create_async_engine(url, **options)
    logger.info("Database engine created", extra={"dialect": engine.dialect.name})
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create a session factory for the given engine.

    Args:
        engine: Async engine

    Returns:
        Session factory producing AsyncSession objects
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def bind_identity(session: AsyncSession, access_token: Optional[str]) -> None:
    """
    Attach the caller's access token to the current transaction.

    Row-level security policies read the token back with
    ``current_setting(<DB_IDENTITY_SETTING>, true)``. The setting is
    transaction-local, so it never leaks to the next user of a pooled
    connection. The token is transported as-is; it is not inspected here.

    Args:
        session: Session with an open transaction
        access_token: Caller token, or None for anonymous access
    """
    if not access_token:
        return

    # Row-level security settings only exist on PostgreSQL
    if session.bind is None or session.bind.dialect.name != "postgresql":
        return

    await session.execute(
        text("SELECT set_config(:setting, :token, true)"),
        {"setting": settings.DB_IDENTITY_SETTING, "token": access_token},
    )
