"""Logging setup for the ConvoMap server and CLI."""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from convomap.paths import get_log_dir

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# sessions run for hours; keep the log bounded
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# per-request chatter from the HTTP, Gemini, Firestore and microphone clients
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "urllib3", "speech_recognition")


def setup_logging(
    log_file_name: str = 'convomap.log',
    console_level: Union[int, str] = logging.ERROR,
    level: Optional[Union[int, str]] = None,
) -> logging.Logger:
    """
    Configure the root logger for one entry point.

    Args:
        log_file_name: File name inside get_log_dir(); rotated at LOG_FILE_MAX_BYTES
        console_level: Level for the console handler
        level: Root and file level (default: settings.LOG_LEVEL)
    """
    if level is None:
        from convomap import settings
        level = settings.LOG_LEVEL

    root = logging.getLogger()
    root.setLevel(level)
    # entry points may call this more than once (reload, tests)
    root.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    try:
        file_handler = RotatingFileHandler(
            get_log_dir() / log_file_name,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        )
    except OSError as e:
        root.warning(f"File logging disabled: {e}")
    else:
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
