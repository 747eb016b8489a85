"""
ConvoMap Package

Conversation mapping service: speech transcription is buffered into timed
chunks, each chunk is classified as on-track or branching, and the resulting
node sequence is laid out as a growing 2D graph.

Main modules:
- text_to_graph_pipeline: capture buffer, chunk classifier, graph builder,
  layout engine, viewport controller and the capture session tying them together
- storage: conversation / node / transcript persistence
- analysis: sentiment and brain-wave classification of transcripts
- settings: Configuration and environment management

Usage:
    from convomap import settings
    from convomap.text_to_graph_pipeline.capture_session import CaptureSession
"""

from . import settings

__version__ = "0.1.0"
__all__ = ["settings"]
