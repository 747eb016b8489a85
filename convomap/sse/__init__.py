from convomap.sse.event_emitter import SSEEventEmitter, SSEEventType

__all__ = [
    "SSEEventEmitter",
    "SSEEventType",
]
