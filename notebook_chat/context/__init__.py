from .assembler import (
    MISSING_CONTENT_PLACEHOLDER,
    NO_DOCUMENT_CONTEXT,
    AssembledContext,
    SourceRegistry,
    find_citations,
)

__all__ = [
    "AssembledContext",
    "SourceRegistry",
    "NO_DOCUMENT_CONTEXT",
    "MISSING_CONTENT_PLACEHOLDER",
    "find_citations",
]
