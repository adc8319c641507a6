"""
NotebookService: the single in-process entry point for a UI layer.

One instance is built at startup and owns the document cache; the
dispatcher and source registry receive that cache by reference.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from notebook_chat.cache import DocumentCache
from notebook_chat.context import AssembledContext, SourceRegistry, find_citations
from notebook_chat.exception import PreconditionError
from notebook_chat.extraction import ExtractionDispatcher
from notebook_chat.extractors import GroqVisionOCR, OCRBackend
from notebook_chat.llm import ChatClient, ChatMessage, build_chat_client
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.models import FileSource, FolderSource, Source
from notebook_chat.security import ConfidentialityCodec
from notebook_chat.storage import BlobStore, build_blob_store
from notebook_chat.utils.config_loader import AppSettings, load_settings


@dataclass
class ChatResult:
    answer: str
    document_index: List[str] = field(default_factory=list)
    citations: List[str] = field(default_factory=list)


class NotebookService:
    def __init__(
        self,
        cache: DocumentCache,
        dispatcher: ExtractionDispatcher,
        registry: SourceRegistry,
        chat_client: Optional[ChatClient] = None,
        settings: Optional[AppSettings] = None,
    ):
        self.cache = cache
        self.dispatcher = dispatcher
        self.registry = registry
        self.chat_client = chat_client
        self.settings = settings

    @classmethod
    async def create(
        cls,
        settings: Optional[AppSettings] = None,
        store: Optional[BlobStore] = None,
        ocr: Optional[OCRBackend] = None,
        chat_client: Optional[ChatClient] = None,
    ) -> "NotebookService":
        """Wire all components and load the persisted cache."""
        settings = settings or load_settings()
        store = store or build_blob_store(settings)
        codec = ConfidentialityCodec(store, key_storage_key=settings.cache.key_storage_key)
        cache = DocumentCache(store, codec, storage_key=settings.cache.storage_key)
        await cache.load()

        dispatcher = ExtractionDispatcher(
            cache,
            ocr=ocr or GroqVisionOCR(settings.ocr),
            settings=settings.extraction,
        )
        service = cls(cache, dispatcher, SourceRegistry(cache), chat_client, settings)
        log.info("NotebookService ready | cached_entries=%d", len(cache))
        return service

    # -------------------------------------------------
    # Extraction
    # -------------------------------------------------
    async def process_sources(self, sources: Sequence[Source]) -> Dict[str, str]:
        """Extract every file (and folder child) that is not cached yet."""
        self.registry.validate(sources)
        pending = self.registry.find_unprocessed(sources)
        if not pending:
            log.info("All sources already processed")
            return {}
        return await self.dispatcher.extract_many(pending)

    async def reprocess(self, source: Source) -> Dict[str, str]:
        """Drop cached text for a file or every child of a folder, then extract again."""
        if isinstance(source, FileSource):
            return {source.name: await self.dispatcher.reprocess(source)}
        if isinstance(source, FolderSource):
            for child in source.files:
                await self.cache.clear(source.qualified_name(child))
            return await self.dispatcher.extract_many(
                self.registry.iter_files([source])
            )
        log.info("Nothing to reprocess for %s source %s", source.kind.value, source.name)
        return {}

    def get_processed_document(self, name: str) -> Optional[str]:
        content = self.cache.get(name)
        log.info(
            "Retrieved document %s: %s",
            name,
            f"{len(content)} characters" if content is not None else "not found",
        )
        return content

    async def clear_cache(self, name: Optional[str] = None) -> None:
        await self.cache.clear(name)

    # -------------------------------------------------
    # Chat
    # -------------------------------------------------
    def assemble_context(self, sources: Sequence[Source]) -> AssembledContext:
        return self.registry.assemble_context(sources)

    def _client(self) -> ChatClient:
        if self.chat_client is None:
            self.chat_client = build_chat_client(self.settings)
        return self.chat_client

    async def chat(
        self,
        message: str,
        history: Sequence[ChatMessage],
        sources: Sequence[Source],
    ) -> ChatResult:
        if not message or not message.strip():
            raise PreconditionError("message required")

        context = self.assemble_context(sources)
        client = self._client()
        answer = await client.chat(message, history, context.context_block)
        return ChatResult(
            answer=answer,
            document_index=list(context.document_index),
            citations=find_citations(answer, context.document_index),
        )
