from __future__ import annotations

import logging
from typing import Protocol

import redis
from sqlalchemy.orm import Session, sessionmaker

from taskboard.models.kv_blob import KeyValueBlob

logger = logging.getLogger(__name__)

class BlobStore(Protocol):
    """One opaque string per key. Callers own the encoding."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...

class MemoryBlobStore:
    """Process-local store. Used in tests and for throwaway dev runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

class SqlBlobStore:
    """Blobs in the `kv_blobs` table; one short session per call."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        with self._session_factory() as db:
            row = db.get(KeyValueBlob, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as db:
            row = db.get(KeyValueBlob, key)
            if row is None:
                db.add(KeyValueBlob(key=key, value=value))
            else:
                row.value = value
                db.add(row)
            db.commit()
        logger.debug("blob written key=%s bytes=%d", key, len(value))

    def delete(self, key: str) -> None:
        with self._session_factory() as db:
            row = db.get(KeyValueBlob, key)
            if row is not None:
                db.delete(row)
                db.commit()

class RedisBlobStore:
    def __init__(self, client: redis.Redis, *, prefix: str = "blob:") -> None:
        self._client = client
        self._prefix = prefix

    def _k(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        value = self._client.get(self._k(key))
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    def set(self, key: str, value: str) -> None:
        self._client.set(self._k(key), value)

    def delete(self, key: str) -> None:
        self._client.delete(self._k(key))

def build_blob_store(backend: str) -> BlobStore:
    if backend == "memory":
        return MemoryBlobStore()

    if backend == "sql":
        from taskboard.db import SessionLocal

        return SqlBlobStore(SessionLocal)

    if backend == "redis":
        from taskboard.redis_client import redis_client

        return RedisBlobStore(redis_client)

    raise ValueError(f"unknown storage backend: {backend}")
