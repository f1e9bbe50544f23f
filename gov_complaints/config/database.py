"""
Engine and session setup for the complaints store.

PostgreSQL in production, SQLite for local runs and tests. SQLite
connections get foreign-key enforcement so attachment rows cascade with
their complaint the same way they do on PostgreSQL.
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from gov_complaints.config.settings import settings
from gov_complaints.core.logging import get_logger

logger = get_logger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.DB_ECHO,
        "connect_args": dict(settings.DB_CONNECT_ARGS),
    }
    # SQLite pools reject sizing arguments
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_OVERFLOW,
            pool_recycle=3600,
        )
    return options


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _start_query_timer(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault('query_start_time', []).append(time.perf_counter())


def _log_slow_query(conn, cursor, statement, parameters, context, executemany):
    elapsed = time.perf_counter() - conn.info['query_start_time'].pop()
    if elapsed > settings.DB_SLOW_QUERY_SECONDS:
        logger.warning(
            f"Slow query detected ({elapsed:.4f}s): {statement[:100]}...",
            extra={"elapsed_seconds": round(elapsed, 4)},
        )


def create_db_engine(url: Optional[str] = None, **overrides: Any) -> Engine:
    """
    Build an engine with the complaint store's listeners attached.

    Args:
        url: Database URL, defaults to the configured one
        **overrides: Extra ``create_engine`` keyword arguments (poolclass, ...)
    """
    url = url or settings.get_database_url()
    options = _engine_options(url)
    options.update(overrides)

    db_engine = create_engine(url, **options)

    if db_engine.dialect.name == "sqlite":
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
    event.listen(db_engine, "before_cursor_execute", _start_query_timer)
    event.listen(db_engine, "after_cursor_execute", _log_slow_query)

    return db_engine


engine = create_db_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session for one background job; commits on success, rolls back on error."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database context error: {e}", extra={"error_type": type(e).__name__})
        session.rollback()
        raise
    finally:
        session.close()
