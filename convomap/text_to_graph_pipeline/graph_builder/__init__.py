"""
Graph Builder Module
Append-only conversation node sequence and title generation
"""

from convomap.text_to_graph_pipeline.graph_builder.conversation_graph import ConversationGraph
from convomap.text_to_graph_pipeline.graph_builder.titles import (
    generate_provisional_title,
    generate_title_from_labels,
    generate_transcript_title,
    title_from_first_label,
)

__all__ = [
    'ConversationGraph',
    'generate_provisional_title',
    'generate_title_from_labels',
    'generate_transcript_title',
    'title_from_first_label',
]
