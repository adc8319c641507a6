from io import BytesIO

import docx2txt

from notebook_chat.exception import ExtractionError

NO_DOCX_TEXT = (
    "No text could be extracted from this Word document. It may be protected, "
    "contain only images, or use unsupported formatting."
)


class DocxExtractor:
    """Raw text of a .docx (headers, body, footers); formatting is discarded."""

    def extract(self, data: bytes) -> str:
        try:
            text = docx2txt.process(BytesIO(data))
        except Exception as e:
            raise ExtractionError(f"could not read Word document: {e}", e) from e
        if not text or not text.strip():
            return NO_DOCX_TEXT
        return text
