import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# -------------------------------------------------
# Console with proper color handling
# -------------------------------------------------
console = Console(force_terminal=True, color_system="truecolor")

LOG_LEVEL = os.getenv("NOTEBOOK_CHAT_LOG_LEVEL", "INFO").upper()

# -------------------------------------------------
# Silence noisy libraries
# -------------------------------------------------
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "groq", "redis", "PIL")


class CustomLogger:
    """
    Configures the root logger once with a RichHandler and hands out
    named loggers. Safe to instantiate many times.
    """

    _configured = False

    def __init__(self, level: str = LOG_LEVEL):
        if not CustomLogger._configured:
            logging.basicConfig(
                level=level,
                format="%(message)s",  # Rich handles formatting
                datefmt="[%H:%M:%S]",
                handlers=[
                    RichHandler(
                        console=console,
                        rich_tracebacks=True,
                        tracebacks_show_locals=False,
                        show_time=True,
                        show_level=True,
                        show_path=True,
                        log_time_format="%H:%M:%S",
                    )
                ],
            )
            for name in NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)
            CustomLogger._configured = True

    # -------------------------------------------------
    # Export logger
    # -------------------------------------------------
    def get_logger(self, name: str = "notebook_chat") -> logging.Logger:
        return logging.getLogger(name)
