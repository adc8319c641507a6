from io import BytesIO
from typing import Dict

import pandas as pd

from notebook_chat.exception import ExtractionError
from notebook_chat.logger import GLOBAL_LOGGER as log

NO_SHEET_TEXT = "No text could be extracted from this Excel file. It may be protected or empty."
SHEET_DELIMITER = "\n---\n\n"


def _cell(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


class SpreadsheetExtractor:
    """
    Each sheet becomes ``Sheet: <name>`` followed by its rows as
    tab-separated values; sheets are separated by a ``---`` line.
    """

    def extract(self, data: bytes) -> str:
        try:
            sheets: Dict[str, pd.DataFrame] = pd.read_excel(
                BytesIO(data), sheet_name=None, header=None, dtype=object
            )
        except Exception as e:
            raise ExtractionError(f"could not read spreadsheet: {e}", e) from e

        parts = []
        for sheet_name, df in sheets.items():
            lines = [f"Sheet: {sheet_name}\n\n"]
            for row in df.itertuples(index=False, name=None):
                cells = [_cell(v) for v in row]
                if not any(cells):
                    continue
                lines.append("\t".join(cells) + "\n")
            lines.append(SHEET_DELIMITER)
            parts.append("".join(lines))

        log.info("Spreadsheet read | sheets=%d", len(sheets))
        text = "".join(parts)
        return text or NO_SHEET_TEXT
