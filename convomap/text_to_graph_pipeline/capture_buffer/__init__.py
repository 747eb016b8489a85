"""
Capture Buffer Module
Accumulates finalized transcription text until the next chunk tick
"""

from convomap.text_to_graph_pipeline.capture_buffer.buffer_manager import CaptureBuffer

__all__ = ['CaptureBuffer']
