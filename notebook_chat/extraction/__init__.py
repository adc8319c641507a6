from .dispatcher import ExtractionDispatcher, PendingFile, error_text, unsupported_text
from .media_types import MediaFamily, classify_media_type

__all__ = [
    "ExtractionDispatcher",
    "PendingFile",
    "MediaFamily",
    "classify_media_type",
    "error_text",
    "unsupported_text",
]
