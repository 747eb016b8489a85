from convomap.text_to_graph_pipeline.voice_to_text.capture_source import (
    CaptureEvent,
    CaptureSource,
    PushCaptureSource,
)

__all__ = ['CaptureEvent', 'CaptureSource', 'PushCaptureSource']
