"""
Confidentiality codec for values written to the blob store.

AES-256-GCM with a random 12-byte nonce prepended to the ciphertext; the
result is base64 encoded. The 256-bit key is generated once from a CSPRNG
and kept in the blob store as a hex string under its own reserved key.
"""
from __future__ import annotations

import asyncio
import base64
import os
import secrets
from dataclasses import dataclass
from typing import Optional, Union

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from notebook_chat.exception import NotebookChatException
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.storage import BlobStore

NONCE_BYTES = 12
KEY_BYTES = 32

ENCRYPTED_TAG = "enc:"
PLAINTEXT_TAG = "plain:"


# -------------------------------------------------
# Stored value tagging
# -------------------------------------------------
@dataclass(frozen=True)
class EncryptedValue:
    ciphertext: str  # base64(nonce || ciphertext || tag)


@dataclass(frozen=True)
class LegacyPlaintext:
    text: str


StoredValue = Union[EncryptedValue, LegacyPlaintext]


def parse_stored_value(raw: str) -> StoredValue:
    """Untagged values predate tagging and are read as legacy plaintext."""
    if raw.startswith(ENCRYPTED_TAG):
        return EncryptedValue(raw[len(ENCRYPTED_TAG):])
    if raw.startswith(PLAINTEXT_TAG):
        return LegacyPlaintext(raw[len(PLAINTEXT_TAG):])
    return LegacyPlaintext(raw)


def dump_stored_value(value: StoredValue) -> str:
    if isinstance(value, EncryptedValue):
        return ENCRYPTED_TAG + value.ciphertext
    return PLAINTEXT_TAG + value.text


class ConfidentialityCodec:
    """
    encrypt(plaintext) -> base64 ciphertext, decrypt(base64) -> plaintext.

    ``initialize`` must be awaited once before use; it loads the key from
    the blob store or creates and stores a new one.
    """

    def __init__(self, store: BlobStore, key_storage_key: str = "encryption_key"):
        self.store = store
        self.key_storage_key = key_storage_key
        self._aead: Optional[AESGCM] = None
        self._key_hex: Optional[str] = None
        # first-time key generation must happen once per codec
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        async with self._init_lock:
            if self._aead is None:
                await self._load_or_create_key()

    async def _load_or_create_key(self) -> None:
        key_hex = await self.store.get_item(self.key_storage_key)
        key: Optional[bytes] = None
        if key_hex:
            try:
                key = bytes.fromhex(key_hex)
            except ValueError:
                log.warning("Stored encryption key is not valid hex, generating a new one")
            if key is not None and len(key) != KEY_BYTES:
                log.warning("Stored encryption key has wrong length (%d), generating a new one", len(key))
                key = None

        if key is None:
            key = secrets.token_bytes(KEY_BYTES)
            await self.store.set_item(self.key_storage_key, key.hex())
            log.info("Generated new document encryption key")

        self._aead = AESGCM(key)
        self._key_hex = key.hex()

    async def rewrite_key(self) -> None:
        """Write the in-use key back to the store, e.g. after the store was wiped."""
        self._require()
        await self.store.set_item(self.key_storage_key, self._key_hex)

    def _require(self) -> AESGCM:
        if self._aead is None:
            raise NotebookChatException("ConfidentialityCodec used before initialize()")
        return self._aead

    def encrypt(self, plaintext: str) -> str:
        aead = self._require()
        nonce = os.urandom(NONCE_BYTES)
        sealed = aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Raises on malformed input or authentication failure."""
        aead = self._require()
        blob = base64.b64decode(ciphertext, validate=True)
        if len(blob) <= NONCE_BYTES:
            raise ValueError("ciphertext too short")
        nonce, sealed = blob[:NONCE_BYTES], blob[NONCE_BYTES:]
        return aead.decrypt(nonce, sealed, None).decode("utf-8")
