from .base import OCRBackend, TextExtractor
from .docx import DocxExtractor
from .ocr import GroqVisionOCR
from .pdf import PdfExtractor
from .spreadsheet import SpreadsheetExtractor
from .text import decode_plain_text, decode_strict_text

__all__ = [
    "TextExtractor",
    "OCRBackend",
    "PdfExtractor",
    "DocxExtractor",
    "SpreadsheetExtractor",
    "GroqVisionOCR",
    "decode_plain_text",
    "decode_strict_text",
]
