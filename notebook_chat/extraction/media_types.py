from enum import Enum

PDF = "application/pdf"
PLAIN_TEXT = "text/plain"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS = "application/vnd.ms-excel"


class MediaFamily(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    TEXT = "text"
    DOCX = "docx"
    SPREADSHEET = "spreadsheet"
    OTHER = "other"


def classify_media_type(media_type: str) -> MediaFamily:
    """Ordered dispatch: first match wins."""
    mt = (media_type or "").split(";", 1)[0].strip().lower()
    if mt == PDF:
        return MediaFamily.PDF
    if mt.startswith("image/"):
        return MediaFamily.IMAGE
    if mt == PLAIN_TEXT:
        return MediaFamily.TEXT
    if mt == DOCX:
        return MediaFamily.DOCX
    if mt in (XLSX, XLS):
        return MediaFamily.SPREADSHEET
    return MediaFamily.OTHER
