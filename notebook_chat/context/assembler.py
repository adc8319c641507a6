"""
Turns the active source list into (a) files still needing extraction and
(b) one ordered context block for the LLM.

Documents appear in source order; a folder's children follow it in file
order under ``<folder>/<child>``. The LLM cites documents by bracketed
name, so ``document_index`` names must match the stanzas exactly.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from notebook_chat.cache import DocumentCache
from notebook_chat.exception import InvalidSourceError
from notebook_chat.extraction import PendingFile
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.models import FileSource, FolderSource, LinkSource, Source, TextSource
from notebook_chat.prompts.prompt_library import (
    CONTEXT_HEADER,
    INDEX_HEADER,
    NO_CONTEXT_MESSAGE,
)

MISSING_CONTENT_PLACEHOLDER = "No content available for this source."

_CITATION_RE = re.compile(r"\[([^\[\]\n]+)\]")


@dataclass(frozen=True)
class AssembledContext:
    context_block: str
    document_index: Tuple[str, ...]
    has_documents: bool = True


# explicit "no documents" signal; the LLM falls back to general knowledge
NO_DOCUMENT_CONTEXT = AssembledContext(
    context_block=NO_CONTEXT_MESSAGE, document_index=(), has_documents=False
)


class SourceRegistry:
    def __init__(self, cache: DocumentCache):
        self.cache = cache

    @staticmethod
    def validate(sources: Sequence[Source]) -> None:
        """Every emitted document name must be unique across the source set."""
        seen = set()
        for name in SourceRegistry._document_names(sources):
            if name in seen:
                raise InvalidSourceError(f"Duplicate source name '{name}'")
            seen.add(name)

    @staticmethod
    def _document_names(sources: Sequence[Source]) -> Iterator[str]:
        for source in sources:
            if isinstance(source, FolderSource):
                yield source.name
                for child in source.files:
                    yield source.qualified_name(child)
            else:
                yield source.name

    @staticmethod
    def iter_files(sources: Sequence[Source]) -> Iterator[PendingFile]:
        for source in sources:
            if isinstance(source, FileSource):
                yield PendingFile(source)
            elif isinstance(source, FolderSource):
                for child in source.files:
                    yield PendingFile(child, folder=source.name)

    def find_unprocessed(self, sources: Sequence[Source]) -> List[PendingFile]:
        """Files whose composite key is not cached yet. Read-only."""
        return [item for item in self.iter_files(sources) if item.cache_key not in self.cache]

    def lookup(self, item: PendingFile) -> str | None:
        text = self.cache.get(item.cache_key)
        if text is None:
            text = self.cache.get(item.name)
        return text

    def resolve(self, sources: Sequence[Source]) -> List[Tuple[str, str]]:
        """(name, text) per document in citation order; empty pasted text is skipped."""
        resolved: List[Tuple[str, str]] = []
        for source in sources:
            if isinstance(source, FileSource):
                text = self.lookup(PendingFile(source))
                resolved.append((source.name, text if text is not None else MISSING_CONTENT_PLACEHOLDER))
            elif isinstance(source, FolderSource):
                for child in source.files:
                    item = PendingFile(child, folder=source.name)
                    text = self.lookup(item)
                    resolved.append((item.name, text if text is not None else MISSING_CONTENT_PLACEHOLDER))
            elif isinstance(source, TextSource):
                if source.content.strip():
                    resolved.append((source.name, source.content))
            elif isinstance(source, LinkSource):
                resolved.append((source.name, f"Content from {source.name}"))
        return resolved

    def assemble_context(self, sources: Sequence[Source]) -> AssembledContext:
        self.validate(sources)
        resolved = self.resolve(sources)
        if not any(text.strip() for _, text in resolved):
            log.info("No document context available, using general knowledge")
            return NO_DOCUMENT_CONTEXT

        stanzas = "".join(f"Document [{name}]:\n{text}\n\n" for name, text in resolved)
        index = tuple(name for name, _ in resolved)
        listing = "".join(f"{pos}. [{name}]\n" for pos, name in enumerate(index, start=1))

        block = CONTEXT_HEADER + stanzas + INDEX_HEADER + listing
        log.info(
            "Assembled context | documents=%d | chars=%d",
            len(index),
            sum(len(text) for _, text in resolved),
        )
        return AssembledContext(context_block=block, document_index=index)


def find_citations(response: str, document_index: Sequence[str]) -> List[str]:
    """Indexed document names cited as ``[name]`` in ``response``, first-seen order."""
    known = set(document_index)
    cited: List[str] = []
    for match in _CITATION_RE.finditer(response):
        name = match.group(1).strip()
        if name in known and name not in cited:
            cited.append(name)
    return cited
