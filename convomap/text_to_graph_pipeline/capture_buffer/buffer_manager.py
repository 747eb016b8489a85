"""
Capture buffer for finalized transcription text
Accumulates final speech-to-text output between chunk ticks
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class CaptureBuffer:
    """
    Text buffer that accumulates finalized transcription and hands it out as
    one chunk per timer tick.

    Features:
    - Final text is appended, interim text only replaces the live display text
    - extract() swaps the buffer out and resets it in one step
    - Appends and extractions share a lock, since microphone capture delivers
      text from a background thread

    Interim text never reaches the chunk buffer.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._live_text = ""
        self._lock = threading.Lock()

    def add_final_text(self, text: str) -> None:
        if not text or text.strip() == "":
            logger.debug("add_final_text called with empty text")
            return

        with self._lock:
            # separate phrases with a single space unless one side already has it
            if self._buffer and not self._buffer[-1].isspace() and not text[0].isspace():
                self._buffer += " "
            self._buffer += text
            buffer_size = len(self._buffer)

        logger.debug(f"Added '{text}' to capture buffer. Buffer size: {buffer_size}")

    def set_interim_text(self, text: str) -> None:
        """Replace the live display text (non-final recognition output)"""
        with self._lock:
            self._live_text = (text or "").strip()

    @property
    def live_text(self) -> str:
        return self._live_text

    def extract(self) -> Optional[str]:
        """
        Atomically take the buffered text and reset the buffer.

        Returns:
            The stripped chunk, or None when nothing but whitespace was buffered
        """
        with self._lock:
            text, self._buffer = self._buffer, ""

        chunk = text.strip()
        if not chunk:
            return None
        logger.info(f"Extracted chunk of {len(chunk)} chars from capture buffer")
        return chunk

    def get_buffer(self) -> str:
        with self._lock:
            return self._buffer
