"""
Document cache: memoized extracted text, persisted encrypted in a blob store.

Entries are keyed by ``<name>_<byte size>`` (composite key) with the plain
name written alongside as an alias. All names written by one ``put`` form an
alias group; ``clear(name)`` removes the whole group so no stale alias is
left behind.

The in-memory map is always plaintext. The blob store only ever receives
the serialized map with every value encrypted and tagged ``enc:``.
"""
from __future__ import annotations

import asyncio
import json
import re
from typing import Dict, FrozenSet, Iterable, Optional

from notebook_chat.exception import QuotaExceededError
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.models import FOLDER_SEPARATOR
from notebook_chat.security import (
    ConfidentialityCodec,
    EncryptedValue,
    LegacyPlaintext,
    dump_stored_value,
    parse_stored_value,
)
from notebook_chat.storage import BlobStore

_COMPOSITE_RE = re.compile(r"^(?P<name>.+)_(?P<size>\d+)$")


def composite_key(name: str, size: int) -> str:
    return f"{name}_{size}"


class DocumentCache:
    def __init__(
        self,
        store: BlobStore,
        codec: ConfidentialityCodec,
        storage_key: str = "processedDocuments",
    ):
        self.store = store
        self.codec = codec
        self.storage_key = storage_key

        self._entries: Dict[str, str] = {}
        self._groups: Dict[str, FrozenSet[str]] = {}
        self._loaded = False
        # one in-flight blob store write at a time
        self._persist_lock = asyncio.Lock()
        self._load_lock = asyncio.Lock()

    # -------------------------------------------------
    # Read side
    # -------------------------------------------------
    def get(self, name: str) -> Optional[str]:
        """
        Exact-key lookup. ``name`` may be a composite key, a bare or a
        folder-qualified name. A folder-qualified key only ever holds its own
        child's text; a bare child name is last-write-wins across folders.
        """
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._entries)

    # -------------------------------------------------
    # Write side
    # -------------------------------------------------
    async def put(self, name: str, aliases: Iterable[str], text: str) -> None:
        """Whole-value write under ``name`` and every alias, then persist."""
        await self.load()
        group = frozenset({name, *aliases})

        # names moving into this group leave their previous groups
        for key in group:
            previous = self._groups.get(key)
            if previous is not None and previous != group:
                self._detach(key, previous)

        for key in group:
            self._entries[key] = text
            self._groups[key] = group

        log.debug("Cache put | key=%s | aliases=%d | chars=%d", name, len(group) - 1, len(text))
        await self.persist()

    def _detach(self, key: str, group: FrozenSet[str]) -> None:
        remaining = group - {key}
        for other in remaining:
            if self._groups.get(other) == group:
                self._groups[other] = remaining

    async def clear(self, name: Optional[str] = None) -> None:
        await self.load()
        if name is None:
            self._entries.clear()
            self._groups.clear()
            log.info("Cleared all document caches")
        else:
            group = self._groups.get(name, frozenset({name}))
            for key in group:
                self._entries.pop(key, None)
                self._groups.pop(key, None)
            log.info("Cleared cache for %s | keys_removed=%d", name, len(group))
        await self.persist()

    # -------------------------------------------------
    # Persistence
    # -------------------------------------------------
    async def load(self) -> None:
        """Read, decrypt and populate the map. Runs once; later calls are no-ops."""
        async with self._load_lock:
            if self._loaded:
                return
            await self.codec.initialize()
            raw = await self.store.get_item(self.storage_key)
            self._loaded = True
            self._populate(raw)

    def _populate(self, raw: Optional[str]) -> None:
        if not raw:
            log.info("No cached documents found in store")
            return

        try:
            stored = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("Cached document map is not valid JSON, starting empty | error=%s", str(e))
            return
        if not isinstance(stored, dict):
            log.warning("Cached document map has unexpected shape, starting empty")
            return

        legacy = 0
        for key, raw_value in stored.items():
            if not isinstance(raw_value, str):
                continue
            value = parse_stored_value(raw_value)
            if isinstance(value, EncryptedValue):
                try:
                    self._entries[key] = self.codec.decrypt(value.ciphertext)
                    continue
                except Exception as e:
                    # soft migration: keep the value rather than drop it
                    log.debug("Decrypt failed, keeping as legacy plaintext | key=%s | error=%s", key, str(e))
                    value = LegacyPlaintext(value.ciphertext)
            legacy += 1
            self._entries[key] = value.text

        self._rebuild_groups()
        log.info(
            "Loaded cached documents | entries=%d | legacy_plaintext=%d",
            len(self._entries),
            legacy,
        )

    def _rebuild_groups(self) -> None:
        """
        Re-link ``<name>_<size>`` keys with their ``<name>`` alias and, for
        folder children, the bare child name. Only equal texts are linked.
        """
        self._groups = {key: frozenset({key}) for key in self._entries}
        for key in self._entries:
            match = _COMPOSITE_RE.match(key)
            if not match:
                continue
            name = match.group("name")
            candidates = [name]
            if FOLDER_SEPARATOR in name:
                candidates.append(name.rsplit(FOLDER_SEPARATOR, 1)[1])
            for alias in candidates:
                if alias in self._entries and self._entries[alias] == self._entries[key]:
                    group = self._groups[alias] | self._groups[key]
                    for member in group:
                        self._groups[member] = group

    def _serialize(self, entries: Dict[str, str]) -> str:
        out: Dict[str, str] = {}
        for key, text in entries.items():
            try:
                out[key] = dump_stored_value(EncryptedValue(self.codec.encrypt(text)))
            except Exception as e:
                # never fall back to writing plaintext
                log.error("Encryption failed, entry not persisted | key=%s | error=%s", key, str(e))
        return json.dumps(out, ensure_ascii=False)

    async def persist(self) -> None:
        """
        Encrypt and write the whole map as one blob. On quota errors the
        store is wiped and the write retried once; a second failure leaves
        the in-memory cache authoritative for this session.
        """
        await self.codec.initialize()
        async with self._persist_lock:
            payload = self._serialize(dict(self._entries))
            try:
                await self.store.set_item(self.storage_key, payload)
                return
            except QuotaExceededError as e:
                log.warning("Blob store full, wiping and retrying once | error=%s", str(e))
            except Exception as e:
                log.error("Failed to persist document cache | error=%s", str(e))
                return

            try:
                await self.store.clear()
                await self.codec.rewrite_key()
                await self.store.set_item(self.storage_key, payload)
                log.info("Document cache persisted after store wipe")
            except Exception as e:
                log.error(
                    "Document cache not persisted, keeping in-memory copy | error=%s",
                    str(e),
                )
