"""
Key-value blob stores: durable, size-limited, opaque str -> str mappings.

The document cache keeps its whole serialized map under one key and the
codec keeps its symmetric key under another; nothing else is assumed about
the store.
"""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

import redis.asyncio as aioredis
from redis.exceptions import ResponseError

from notebook_chat.exception import QuotaExceededError
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.utils.config_loader import AppSettings
from notebook_chat.utils.thread_pool import run_sync


@runtime_checkable
class BlobStore(Protocol):
    async def get_item(self, key: str) -> Optional[str]:
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Raises QuotaExceededError when the store is full."""
        ...

    async def clear(self) -> None:
        ...


def _entry_size(key: str, value: str) -> int:
    return len(key) + len(value)


class MemoryBlobStore:
    """Process-local store. Used by tests and throwaway sessions."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._data: Dict[str, str] = {}

    def _used(self, excluding: Optional[str] = None) -> int:
        return sum(_entry_size(k, v) for k, v in self._data.items() if k != excluding)

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            needed = self._used(excluding=key) + _entry_size(key, value)
            if needed > self.max_bytes:
                raise QuotaExceededError(
                    f"Blob store quota exceeded writing '{key}' ({needed} > {self.max_bytes})"
                )
        self._data[key] = value

    async def clear(self) -> None:
        self._data.clear()


class FileBlobStore:
    """
    One file per key inside a directory. File names are hashed keys so any
    key string is safe on disk.
    """

    def __init__(self, directory: Path | str, max_bytes: Optional[int] = None):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.max_bytes = max_bytes

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self.directory / f"{digest}.blob"

    def _used(self, excluding: Path) -> int:
        return sum(
            p.stat().st_size for p in self.directory.glob("*.blob") if p != excluding
        )

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        if self.max_bytes is not None:
            needed = self._used(excluding=path) + len(value.encode("utf-8"))
            if needed > self.max_bytes:
                raise QuotaExceededError(
                    f"Blob store quota exceeded writing '{key}' ({needed} > {self.max_bytes})"
                )
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def _clear(self) -> None:
        for p in self.directory.glob("*.blob"):
            p.unlink(missing_ok=True)

    async def get_item(self, key: str) -> Optional[str]:
        return await run_sync(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        await run_sync(self._write, key, value)

    async def clear(self) -> None:
        await run_sync(self._clear)


class RedisBlobStore:
    """
    Redis-backed store. Keys live under a namespace prefix so ``clear`` only
    wipes this application's entries, never the whole database.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        namespace: str = "notebook_chat",
        max_bytes: Optional[int] = None,
    ):
        self.client = client
        self.namespace = namespace
        self.max_bytes = max_bytes

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get_item(self, key: str) -> Optional[str]:
        return await self.client.get(self._key(key))

    async def set_item(self, key: str, value: str) -> None:
        if self.max_bytes is not None and _entry_size(key, value) > self.max_bytes:
            raise QuotaExceededError(
                f"Blob store quota exceeded writing '{key}' ({len(value)} chars)"
            )
        try:
            await self.client.set(self._key(key), value)
        except ResponseError as e:
            # maxmemory reached with noeviction policy
            if "OOM" in str(e):
                raise QuotaExceededError(f"Redis refused write for '{key}'", e) from e
            raise

    async def clear(self) -> None:
        keys = [k async for k in self.client.scan_iter(match=f"{self.namespace}:*")]
        if keys:
            await self.client.delete(*keys)


def build_blob_store(settings: AppSettings) -> BlobStore:
    """Construct the store selected by ``cache.backend``."""
    cache_cfg = settings.cache
    if cache_cfg.backend == "memory":
        store = MemoryBlobStore(max_bytes=cache_cfg.max_bytes)
    elif cache_cfg.backend == "file":
        store = FileBlobStore(cache_cfg.file_dir, max_bytes=cache_cfg.max_bytes)
    else:
        client = aioredis.Redis(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            decode_responses=True,
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
        )
        store = RedisBlobStore(client, max_bytes=cache_cfg.max_bytes)
    log.info("Blob store ready | backend=%s", cache_cfg.backend)
    return store


__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "FileBlobStore",
    "RedisBlobStore",
    "build_blob_store",
]

