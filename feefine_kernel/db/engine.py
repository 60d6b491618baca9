"""
Module: feefine_kernel.db.engine
Responsibility: own the process-wide SQLAlchemy engine and session factory
    used by the fee/fine persistence adapter.
Architecture position: Kernel > DB.  May import db/base.py and models/.
    MUST NOT import selectors/ or outer layers.

The ledger is read far more than it is written; the only writers are the
test suite and whatever system records fee/fine actions.  Sessions are
created with ``expire_on_commit=False`` so domain objects built from rows
stay readable after the transaction ends.

Failure modes:
    - RuntimeError from get_engine()/get_session() before
      init_engine_from_url() has been called.
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from feefine_kernel.logging_config import get_logger

logger = get_logger("db.engine")


@dataclass
class _Database:
    engine: Engine
    sessions: sessionmaker[Session]


_current: _Database | None = None


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    if make_url(database_url).get_backend_name() == "sqlite":
        # One shared connection keeps an in-memory database alive between sessions
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"pool_size": pool_size, "max_overflow": max_overflow, "pool_pre_ping": True}


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 5,
) -> Engine:
    """
    Create the engine for ``database_url``, replacing any previous one.

    ``pool_size``/``max_overflow`` apply to pooled backends only; SQLite
    (the test database) always runs on a single static connection.
    """
    global _current
    reset_engine()

    engine = create_engine(
        database_url,
        echo=echo,
        **_engine_options(database_url, pool_size, max_overflow),
    )
    _current = _Database(engine, sessionmaker(bind=engine, expire_on_commit=False))
    logger.info("engine_initialized", extra={"dialect": engine.dialect.name})
    return engine


def _require() -> _Database:
    if _current is None:
        raise RuntimeError("Database not initialized; call init_engine_from_url() first")
    return _current


def get_engine() -> Engine:
    return _require().engine


def get_session() -> Session:
    """New session bound to the current engine.  The caller closes it."""
    return _require().sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session that commits when the block succeeds and rolls back when it raises."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from feefine_kernel.db.base import Base
    import feefine_kernel.models  # noqa: F401  registers the fee/fine tables

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from feefine_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose of the current engine, if any."""
    global _current
    if _current is not None:
        _current.engine.dispose()
        _current = None


atexit.register(reset_engine)
