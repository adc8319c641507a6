from .source import (
    FOLDER_SEPARATOR,
    FileSource,
    FolderSource,
    LinkSource,
    Source,
    SourceKind,
    TextSource,
    guess_media_type,
)

__all__ = [
    "FOLDER_SEPARATOR",
    "SourceKind",
    "FileSource",
    "FolderSource",
    "TextSource",
    "LinkSource",
    "Source",
    "guess_media_type",
]
