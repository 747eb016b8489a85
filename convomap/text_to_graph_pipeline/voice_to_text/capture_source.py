import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureEvent:
    """One transcription result. Interim results are replaced by later ones."""
    text: str
    is_final: bool


CaptureEventHandler = Callable[[CaptureEvent], None]
CaptureErrorHandler = Callable[[Exception], None]


class CaptureSource(ABC):
    """
    A speech capture capability. Handlers are always invoked on the event
    loop thread.
    """

    @abstractmethod
    def start(self, on_event: CaptureEventHandler, on_error: CaptureErrorHandler) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass


class PushCaptureSource(CaptureSource):
    """Capture source fed by the caller, e.g. text posted to the HTTP API"""

    def __init__(self):
        self._on_event: Optional[CaptureEventHandler] = None
        self._on_error: Optional[CaptureErrorHandler] = None

    @property
    def is_active(self) -> bool:
        return self._on_event is not None

    def start(self, on_event: CaptureEventHandler, on_error: CaptureErrorHandler) -> None:
        self._on_event = on_event
        self._on_error = on_error

    def stop(self) -> None:
        self._on_event = None
        self._on_error = None

    def push(self, text: str, is_final: bool = True) -> bool:
        """
        Deliver one transcription result.

        Returns:
            False when the source is stopped and the text was ignored
        """
        if self._on_event is None:
            logger.debug("Push to stopped capture source ignored")
            return False
        self._on_event(CaptureEvent(text=text, is_final=is_final))
        return True

    def fail(self, error: Exception) -> None:
        """Report a capture failure to the session"""
        if self._on_error is not None:
            self._on_error(error)
