from .blob_store import (
    BlobStore,
    FileBlobStore,
    MemoryBlobStore,
    RedisBlobStore,
    build_blob_store,
)

__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "FileBlobStore",
    "RedisBlobStore",
    "build_blob_store",
]
