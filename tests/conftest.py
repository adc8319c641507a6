import io
import zipfile
from typing import List, Optional, Sequence

import fitz
import pandas as pd
import pytest

from notebook_chat.cache import DocumentCache
from notebook_chat.extraction import ExtractionDispatcher
from notebook_chat.security import ConfidentialityCodec
from notebook_chat.storage import MemoryBlobStore
from notebook_chat.utils.config_loader import ExtractionSettings


class FakeOCR:
    """Returns scripted results in call order; exceptions in the script are raised."""

    def __init__(self, results: Optional[Sequence] = None, default: str = "ocr text"):
        self.results = list(results or [])
        self.default = default
        self.calls: List[str] = []

    async def extract_text(self, image: bytes, media_type: str) -> str:
        self.calls.append(media_type)
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, BaseException):
            raise result
        return result


class CountingExtractor:
    def __init__(self, text: str = "extracted", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls = 0

    def extract(self, data: bytes) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


def make_pdf(page_texts: Sequence[str]) -> bytes:
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(paragraphs: Sequence[str]) -> bytes:
    ns = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
    body = "".join(f"<w:p><w:r><w:t>{p}</w:t></w:r></w:p>" for p in paragraphs)
    xml = f'<?xml version="1.0" encoding="UTF-8"?><w:document xmlns:w="{ns}"><w:body>{body}</w:body></w:document>'
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("word/document.xml", xml)
    return buf.getvalue()


def make_xlsx(sheets: dict) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows[1:], columns=rows[0]).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()


@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture
async def cache(store):
    c = DocumentCache(store, ConfidentialityCodec(store))
    await c.load()
    return c


@pytest.fixture
def fake_ocr():
    return FakeOCR()


@pytest.fixture
def dispatcher(cache, fake_ocr):
    return ExtractionDispatcher(
        cache,
        ocr=fake_ocr,
        settings=ExtractionSettings(min_pdf_text_chars=10, max_ocr_pages=2, ocr_dpi=50),
    )


async def reload_cache(store) -> DocumentCache:
    """Fresh codec + cache over the same store, i.e. an application restart."""
    fresh = DocumentCache(store, ConfidentialityCodec(store))
    await fresh.load()
    return fresh
