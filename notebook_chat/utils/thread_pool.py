import asyncio
from concurrent.futures import ThreadPoolExecutor

IO_POOL_VAL = ThreadPoolExecutor(max_workers=8)


def run_sync(func, *args, **kwargs):
    """
    Run blocking / CPU-heavy / IO-heavy code off the current event loop.
    This is crucial for:
    - PDF parsing and page rasterization (PyMuPDF)
    - DOCX unzip + XML walk (docx2txt)
    - Spreadsheet parsing (pandas)
    - File-backed blob store reads/writes
    """
    loop = asyncio.get_running_loop()
    return loop.run_in_executor(IO_POOL_VAL, lambda: func(*args, **kwargs))
