"""
Database engine and sessions for the CRM.

One engine per process, held at module level.  ``init_engine`` takes the
``database`` section of the active ``CrmConfig``; ``init_engine_from_url``
is the lower-level form used by tests and scripts.

SQLite URLs get ``check_same_thread=False``; an in-memory SQLite database
is pinned to a single connection so every session sees the same data.
Server databases get a ``QueuePool`` with pre-ping.

Services own their transactions: they commit on success and roll back and
re-raise on failure.  Nothing here commits on their behalf.
"""

from __future__ import annotations

import atexit
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from crm_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from crm_config.schema import DatabaseSettings

logger = get_logger("db.engine")

_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database engine not initialized; call init_engine() first."


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> Engine:
    """Create the process engine for ``database_url``; replaces any previous one."""
    global _engine, _sessions

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options: dict = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options = {
            "poolclass": QueuePool,
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,
        }

    _engine = create_engine(database_url, echo=echo, **options)
    _sessions = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info("engine_initialized", extra={
        "dialect": _engine.dialect.name,
        "database": url.database or ":memory:",
    })
    return _engine


def init_engine(settings: DatabaseSettings, url: str | None = None) -> Engine:
    """Create the process engine from config; ``url`` overrides ``settings.url``."""
    return init_engine_from_url(
        url or settings.url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """New session on the process engine. The caller closes it."""
    if _sessions is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _sessions()


def create_tables() -> None:
    """Create every table registered by ``crm_modules``."""
    from crm_kernel.db.base import Base
    from crm_modules.orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    from crm_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _sessions

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
