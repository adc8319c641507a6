"""
Extraction dispatcher: file in, text out, through the document cache.

``extract`` never raises. Parser failures become a diagnostic string that
is cached like any other result, so a broken file is not re-parsed on every
chat turn. OCR network failures also become diagnostic text but are *not*
cached, so the next attempt calls the OCR service again.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from notebook_chat.cache import DocumentCache, composite_key
from notebook_chat.exception import LLMClientError, NotebookChatException, PreconditionError
from notebook_chat.extraction.media_types import MediaFamily, classify_media_type
from notebook_chat.extractors import (
    DocxExtractor,
    OCRBackend,
    PdfExtractor,
    SpreadsheetExtractor,
    TextExtractor,
    decode_plain_text,
    decode_strict_text,
)
from notebook_chat.extractors.pdf import NO_PDF_TEXT, format_pages
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.models import FOLDER_SEPARATOR, FileSource
from notebook_chat.utils.config_loader import ExtractionSettings
from notebook_chat.utils.thread_pool import run_sync

NO_IMAGE_TEXT = "No text could be extracted from this image."


def _reason(exc: BaseException) -> str:
    if isinstance(exc, NotebookChatException):
        return exc.error_message
    return str(exc) or type(exc).__name__


def error_text(exc: BaseException) -> str:
    return f"Error extracting content: {_reason(exc)}"


def unsupported_text(media_type: str) -> str:
    return (
        f"Unable to extract content from this file type ({media_type}). "
        "Please convert it to PDF, text, or an image for better results."
    )


@dataclass(frozen=True)
class PendingFile:
    """A file plus the folder it belongs to, if any."""

    file: FileSource
    folder: Optional[str] = None

    @property
    def name(self) -> str:
        if self.folder:
            return f"{self.folder}{FOLDER_SEPARATOR}{self.file.name}"
        return self.file.name

    @property
    def cache_key(self) -> str:
        return composite_key(self.name, self.file.size)

    @property
    def aliases(self) -> Set[str]:
        """Folder children are also reachable by their bare file name."""
        return {self.name, self.file.name}


@dataclass
class _Outcome:
    text: str
    cacheable: bool = True


class ExtractionDispatcher:
    def __init__(
        self,
        cache: DocumentCache,
        ocr: Optional[OCRBackend] = None,
        settings: Optional[ExtractionSettings] = None,
        pdf: Optional[PdfExtractor] = None,
        docx: Optional[TextExtractor] = None,
        spreadsheet: Optional[TextExtractor] = None,
    ):
        self.cache = cache
        self.ocr = ocr
        self.settings = settings or ExtractionSettings()
        self.pdf = pdf or PdfExtractor()
        self.docx = docx or DocxExtractor()
        self.spreadsheet = spreadsheet or SpreadsheetExtractor()
        self._fanout = asyncio.Semaphore(self.settings.max_concurrency)

    # -------------------------------------------------
    # Public API
    # -------------------------------------------------
    async def extract(self, file: FileSource, folder: Optional[str] = None) -> str:
        return await self.extract_pending(PendingFile(file, folder))

    async def extract_pending(self, item: PendingFile) -> str:
        key = item.cache_key
        cached = self.cache.get(key)
        if cached is not None:
            log.info("Using cached content for %s", item.name)
            return cached

        try:
            outcome = await self._dispatch(item.file)
        except Exception as e:
            log.error("Extraction failed | file=%s | error=%s", item.name, _reason(e))
            outcome = _Outcome(error_text(e))

        if outcome.cacheable:
            await self.cache.put(key, item.aliases, outcome.text)
        else:
            log.warning("Transient OCR failure, result not cached | file=%s", item.name)
        return outcome.text

    async def extract_many(self, items: Iterable[PendingFile]) -> Dict[str, str]:
        """Fan out over independent files; returns name -> text in input order."""
        items = list(items)

        async def _bounded(item: PendingFile) -> str:
            async with self._fanout:
                return await self.extract_pending(item)

        results = await asyncio.gather(*(_bounded(i) for i in items))
        log.info("Documents processed | count=%d", len(items))
        return {item.name: text for item, text in zip(items, results)}

    async def reprocess(self, file: FileSource, folder: Optional[str] = None) -> str:
        item = PendingFile(file, folder)
        await self.cache.clear(item.name)
        return await self.extract_pending(item)

    # -------------------------------------------------
    # Dispatch
    # -------------------------------------------------
    async def _dispatch(self, file: FileSource) -> _Outcome:
        family = classify_media_type(file.media_type)
        log.info("Processing %s file: %s (%d bytes)", family.value, file.name, file.size)

        if family is MediaFamily.PDF:
            return await self._extract_pdf(file)
        if family is MediaFamily.IMAGE:
            return await self._extract_image(file)
        if family is MediaFamily.TEXT:
            return _Outcome(decode_plain_text(file.data))
        if family is MediaFamily.DOCX:
            return _Outcome(await run_sync(self.docx.extract, file.data))
        if family is MediaFamily.SPREADSHEET:
            return _Outcome(await run_sync(self.spreadsheet.extract, file.data))

        try:
            return _Outcome(decode_strict_text(file.data))
        except (UnicodeDecodeError, ValueError):
            log.warning("Could not extract text from %s, using generic message", file.media_type)
            return _Outcome(unsupported_text(file.media_type))

    async def _ocr(self, image: bytes, media_type: str) -> str:
        if self.ocr is None:
            raise PreconditionError("OCR backend not configured")
        return await self.ocr.extract_text(image, media_type)

    async def _extract_image(self, file: FileSource) -> _Outcome:
        try:
            text = await self._ocr(file.data, file.media_type)
        except (LLMClientError, PreconditionError) as e:
            return _Outcome(f"Error extracting text from image: {_reason(e)}", cacheable=False)
        return _Outcome(text if text.strip() else NO_IMAGE_TEXT)

    async def _extract_pdf(self, file: FileSource) -> _Outcome:
        pages = await run_sync(self.pdf.extract_pages, file.data)
        text_chars = sum(len(p.strip()) for p in pages)
        if text_chars >= self.settings.min_pdf_text_chars:
            return _Outcome(format_pages(pages))

        log.info(
            "PDF text layer near-empty, escalating to OCR | file=%s | chars=%d | pages=%d",
            file.name,
            text_chars,
            len(pages),
        )
        if self.ocr is None:
            return _Outcome(format_pages(pages) if text_chars else NO_PDF_TEXT)

        max_pages = self.settings.max_ocr_pages
        images = await run_sync(
            self.pdf.render_pages, file.data, max_pages, self.settings.ocr_dpi
        )
        results = await asyncio.gather(
            *(self._ocr(img, "image/png") for img in images), return_exceptions=True
        )

        cacheable = True
        ocr_pages: List[str] = []
        any_text = False
        for page_no, result in enumerate(results, start=1):
            if isinstance(result, BaseException):
                if isinstance(result, (LLMClientError, PreconditionError)):
                    cacheable = False
                log.warning("OCR failed for page %d of %s | error=%s", page_no, file.name, _reason(result))
                ocr_pages.append(f"[OCR failed for this page: {_reason(result)}]")
                continue
            stripped = " ".join(result.split())
            any_text = any_text or bool(stripped)
            ocr_pages.append(stripped)

        if not any_text and cacheable:
            return _Outcome(NO_PDF_TEXT)

        text = format_pages(ocr_pages)
        if len(pages) > max_pages:
            text += f"[Note: OCR was limited to the first {max_pages} of {len(pages)} pages; remaining pages were skipped.]\n"
        return _Outcome(text, cacheable=cacheable)
