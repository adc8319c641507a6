from __future__ import annotations

from typing import List

import fitz

from notebook_chat.exception import ExtractionError
from notebook_chat.logger import GLOBAL_LOGGER as log

NO_PDF_TEXT = (
    "No text could be extracted from this PDF. It may be scanned or contain only images."
)


def format_pages(pages: List[str]) -> str:
    """``Page <n>: <text>`` per page, blank line between pages."""
    return "".join(f"Page {i}: {text}\n\n" for i, text in enumerate(pages, start=1))


class PdfExtractor:
    """Text layer extraction and page rasterization with PyMuPDF."""

    def _open(self, data: bytes) -> fitz.Document:
        try:
            return fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise ExtractionError(f"could not open PDF: {e}", e) from e

    def extract_pages(self, data: bytes) -> List[str]:
        pdf = self._open(data)
        try:
            if pdf.needs_pass:
                raise ExtractionError("PDF is encrypted")
            pages = [" ".join(page.get_text("text").split()) for page in pdf]
        finally:
            pdf.close()
        log.info("PDF text layer read | pages=%d", len(pages))
        return pages

    def render_pages(self, data: bytes, max_pages: int, dpi: int = 150) -> List[bytes]:
        """PNG bytes for the first ``max_pages`` pages."""
        pdf = self._open(data)
        try:
            images = []
            for i in range(min(max_pages, len(pdf))):
                pix = pdf[i].get_pixmap(dpi=dpi)
                images.append(pix.tobytes("png"))
        finally:
            pdf.close()
        log.info("PDF pages rasterized for OCR | pages=%d | dpi=%d", len(images), dpi)
        return images
