"""Cache Database — SQLAlchemy-backed durable key/value store.

Invariants:
    - Every session auto-rolls-back on exception (no partial writes leak)
    - All SQLAlchemy exceptions mapped to CacheError (core/errors.py)
    - Table created on construction (create_all is idempotent)
    - In-memory SQLite URLs share one connection (StaticPool) so data survives
      across sessions

Design Decisions:
    - Synchronous engine: local storage is read inside synchronous store
      mutations, and SQLite file IO is fast enough for a handful of rows
    - Implements core.boundary_protocols.KeyValueStore structurally
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pcas.core.errors import CacheError
from pcas.db.base import Base
from pcas.models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class SqlKeyValueStore:
    """String key/value storage in the cache_entries table."""

    def __init__(self, database_url: str):
        if _is_memory_sqlite(database_url):
            self.engine = create_engine(
                database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(database_url, pool_pre_ping=True)
        self._session_factory = sessionmaker(
            self.engine, class_=Session, expire_on_commit=False,
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self, key: str = "*") -> Iterator[Session]:
        """Provide session with auto-rollback; failures become CacheError."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Cache DB error: {e}", extra={"cache_key": key})
            raise CacheError(str(e), key) from e
        finally:
            session.close()

    def get(self, key: str) -> str | None:
        with self.session(key) as db:
            entry = db.get(CacheEntry, key)
            return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        with self.session(key) as db:
            entry = db.get(CacheEntry, key)
            if entry is None:
                db.add(CacheEntry(key=key, value=value))
            else:
                entry.value = value

    def remove(self, key: str) -> None:
        with self.session(key) as db:
            db.execute(delete(CacheEntry).where(CacheEntry.key == key))

    def keys(self) -> list[str]:
        with self.session() as db:
            return list(db.scalars(select(CacheEntry.key)))

    def dispose(self) -> None:
        self.engine.dispose()
