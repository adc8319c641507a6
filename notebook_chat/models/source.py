"""User-added sources: files, folders of files, pasted text and links."""
from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path
from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from notebook_chat.exception import InvalidSourceError

FOLDER_SEPARATOR = "/"

# mimetypes tables differ across platforms; pin the formats we dispatch on
_KNOWN_MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".json": "application/json",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
}


def guess_media_type(file_name: str) -> str:
    ext = Path(file_name).suffix.lower()
    if ext in _KNOWN_MEDIA_TYPES:
        return _KNOWN_MEDIA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or "application/octet-stream"


def _check_name(name: str) -> str:
    if not name or not name.strip():
        raise InvalidSourceError("Source name must not be empty")
    if FOLDER_SEPARATOR in name:
        # '/' is reserved for folder-qualified names
        raise InvalidSourceError(
            f"Source name '{name}' must not contain '{FOLDER_SEPARATOR}'"
        )
    return name


class _NamedSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _check_name(value)


class SourceKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"
    TEXT = "text"
    LINK = "link"


class FileSource(_NamedSource):
    kind: Literal[SourceKind.FILE] = SourceKind.FILE
    media_type: str = "application/octet-stream"
    data: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path | str, media_type: str | None = None) -> "FileSource":
        p = Path(path)
        return cls(
            name=p.name,
            media_type=media_type or guess_media_type(p.name),
            data=p.read_bytes(),
        )


class FolderSource(_NamedSource):
    kind: Literal[SourceKind.FOLDER] = SourceKind.FOLDER
    files: List[FileSource] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_children(self) -> "FolderSource":
        seen = set()
        for f in self.files:
            if f.name in seen:
                raise InvalidSourceError(
                    f"Folder '{self.name}' contains duplicate file name '{f.name}'"
                )
            seen.add(f.name)
        return self

    def qualified_name(self, child: FileSource) -> str:
        return f"{self.name}{FOLDER_SEPARATOR}{child.name}"

    @classmethod
    def from_directory(cls, path: Path | str, name: str | None = None) -> "FolderSource":
        """Top-level regular files of a directory, hidden files skipped, sorted by name."""
        root = Path(path)
        files = [
            FileSource.from_path(p)
            for p in sorted(root.iterdir())
            if p.is_file() and not p.name.startswith(".")
        ]
        return cls(name=name or root.name, files=files)


class TextSource(_NamedSource):
    kind: Literal[SourceKind.TEXT] = SourceKind.TEXT
    content: str


class LinkSource(_NamedSource):
    kind: Literal[SourceKind.LINK] = SourceKind.LINK
    url: str = ""


Source = Union[FileSource, FolderSource, TextSource, LinkSource]
