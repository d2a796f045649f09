"""
reliefanchor/features/storage/service.py

Device-local key/value storage for opaque text blobs.

Two implementations share one interface:
- SqlKeyValueStore: the device_storage table in the local SQLite file
- InMemoryKeyValueStore: process memory, for tests and previews
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol
from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from reliefanchor.core.database import create_all_tables, device_storage, get_engine


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...

    def clear(self) -> None:
        ...


class InMemoryKeyValueStore:
    """Dict-backed store. Not shared between instances."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)

    def clear(self) -> None:
        self._data.clear()


class SqlKeyValueStore:
    """
    SQLite-backed store (any SQLAlchemy URL works).

    Maintains identical interface to InMemoryKeyValueStore.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or get_engine()
        # Ensure table exists (idempotent)
        create_all_tables(self._engine)
        self._session_factory = sessionmaker(bind=self._engine, autoflush=False)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> Optional[str]:
        with self._session() as session:
            row = session.execute(
                select(device_storage.c.value).where(device_storage.c.storage_key == key)
            ).first()
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self._session() as session:
            result = session.execute(
                update(device_storage)
                .where(device_storage.c.storage_key == key)
                .values(value=value)
            )
            if result.rowcount == 0:
                session.execute(insert(device_storage).values(storage_key=key, value=value))

    def remove(self, key: str) -> None:
        with self._session() as session:
            session.execute(delete(device_storage).where(device_storage.c.storage_key == key))

    def keys(self) -> List[str]:
        with self._session() as session:
            rows = session.execute(
                select(device_storage.c.storage_key).order_by(device_storage.c.storage_key)
            ).all()
            return [row.storage_key for row in rows]

    def clear(self) -> None:
        with self._session() as session:
            session.execute(delete(device_storage))
