from .document_cache import DocumentCache, composite_key

__all__ = ["DocumentCache", "composite_key"]
