"""UTF-8 decoding for plain text and for unknown media types."""

# printable ASCII + tab, LF, CR
_TEXT_BYTES = set(range(32, 127)) | {9, 10, 13}


def decode_plain_text(data: bytes) -> str:
    """Declared text/plain: decode leniently, invalid sequences replaced."""
    return data.decode("utf-8", errors="replace")


def _looks_binary(data: bytes, sample_size: int = 8192) -> bool:
    sample = data[:sample_size]
    if not sample:
        return False
    if b"\x00" in sample:
        return True
    # bytes >= 0x80 are valid UTF-8 continuation/lead bytes once decoding succeeded
    non_text = sum(1 for byte in sample if byte < 128 and byte not in _TEXT_BYTES)
    return (non_text / len(sample)) > 0.30


def decode_strict_text(data: bytes) -> str:
    """
    Unknown media type: accept only content that is valid UTF-8 and does
    not look binary. Raises UnicodeDecodeError / ValueError otherwise.
    """
    text = data.decode("utf-8")
    if _looks_binary(data):
        raise ValueError("content looks binary")
    return text
