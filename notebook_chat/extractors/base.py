"""Contracts for pluggable extractor backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextExtractor(Protocol):
    """Blocking parser: raw bytes in, plain text out. May raise."""

    def extract(self, data: bytes) -> str:
        ...


@runtime_checkable
class OCRBackend(Protocol):
    """One image per call. Raises LLMClientError / PreconditionError on failure."""

    async def extract_text(self, image: bytes, media_type: str) -> str:
        ...
