import asyncio
import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SSEEventType(Enum):
    FINAL_TEXT = "final_text"
    LIVE_TEXT = "live_text"
    NODE_APPENDED = "node_appended"
    CLASSIFICATION_FALLBACK = "classification_fallback"
    CAPTURE_FAILED = "capture_failed"
    SESSION_STOPPED = "session_stopped"


class SSEEventEmitter:
    def __init__(self, queue: asyncio.Queue[dict[str, Any]]):
        self.queue = queue

    def publish(self, event_type: SSEEventType, data: dict[str, Any]) -> None:
        # Never block the caller on a full queue; a stalled stream only loses progress events
        try:
            self.queue.put_nowait({"event": event_type.value, "data": data})
        except asyncio.QueueFull:
            logger.warning(f"SSE queue full, dropping {event_type.value} event")
