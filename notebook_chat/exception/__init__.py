from .custom_exception import (
    ExtractionError,
    InvalidSourceError,
    LLMClientError,
    NotebookChatException,
    PreconditionError,
    QuotaExceededError,
)

__all__ = [
    "NotebookChatException",
    "QuotaExceededError",
    "PreconditionError",
    "LLMClientError",
    "ExtractionError",
    "InvalidSourceError",
]
