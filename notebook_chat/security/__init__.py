from .codec import (
    ConfidentialityCodec,
    EncryptedValue,
    LegacyPlaintext,
    StoredValue,
    dump_stored_value,
    parse_stored_value,
)

__all__ = [
    "ConfidentialityCodec",
    "EncryptedValue",
    "LegacyPlaintext",
    "StoredValue",
    "dump_stored_value",
    "parse_stored_value",
]
