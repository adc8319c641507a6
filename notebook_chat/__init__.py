"""Document question-answering core: extraction, cached text and prompt context."""

__version__ = "0.1.0"
