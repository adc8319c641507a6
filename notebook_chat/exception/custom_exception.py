import sys
import traceback
from typing import Optional


class NotebookChatException(Exception):
    """
    Base exception for the project.

    Records the file and line where the underlying error was raised, taken
    either from an exception instance or from ``sys`` (current exc_info).
    """

    def __init__(self, error_message, error_details: Optional[object] = None):
        norm_msg = str(error_message)

        exc_type = exc_value = exc_tb = None
        if error_details is None or error_details is sys:
            exc_type, exc_value, exc_tb = sys.exc_info()
        elif isinstance(error_details, BaseException):
            exc_type = type(error_details)
            exc_value = error_details
            exc_tb = error_details.__traceback__

        last_tb = exc_tb
        while last_tb and last_tb.tb_next:
            last_tb = last_tb.tb_next

        self.file_name = last_tb.tb_frame.f_code.co_filename if last_tb else "<unknown>"
        self.lineno = last_tb.tb_lineno if last_tb else -1
        self.error_message = norm_msg

        if exc_type and exc_tb:
            self.traceback_str = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )
        else:
            self.traceback_str = ""

        super().__init__(self.__str__())

    def __str__(self):
        if self.lineno < 0:
            return self.error_message
        return (
            f"Error in [{self.file_name}] at line [{self.lineno}] | "
            f"Message: {self.error_message}"
        )

    def __repr__(self):
        return f"{type(self).__name__}(file={self.file_name!r}, line={self.lineno}, message={self.error_message!r})"


class QuotaExceededError(NotebookChatException):
    """Blob store refused a write because it is full."""


class PreconditionError(NotebookChatException):
    """A required setting (API key, server URL, source) is missing."""


class LLMClientError(NotebookChatException):
    """An LLM or OCR network call failed. Never cached."""


class ExtractionError(NotebookChatException):
    """Raised inside extractor backends; converted to diagnostic text by the dispatcher."""


class InvalidSourceError(NotebookChatException):
    """A source failed validation (e.g. a top-level name containing '/')."""
