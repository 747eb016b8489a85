"""
Chunk Classifier Module
Classifies transcript chunks as on-track or branching, with a local fallback
"""

from convomap.text_to_graph_pipeline.chunk_classifier.classifier import (
    ChunkClassifier,
    ClassificationError,
    normalize_classification,
)
from convomap.text_to_graph_pipeline.chunk_classifier.clients import (
    GeminiClassificationClient,
    HttpClassificationClient,
    build_chunk_classifier,
)
from convomap.text_to_graph_pipeline.chunk_classifier.heuristics import fallback_classify

__all__ = [
    'ChunkClassifier',
    'ClassificationError',
    'GeminiClassificationClient',
    'HttpClassificationClient',
    'build_chunk_classifier',
    'fallback_classify',
    'normalize_classification',
]
