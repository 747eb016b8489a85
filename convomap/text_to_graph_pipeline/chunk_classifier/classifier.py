"""
Chunk Classifier Adapter
Delegates to an external classification collaborator and falls back to the
local heuristic on any failure, so callers always get a well-formed result.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Optional

from convomap.models import ChunkClassification
from convomap.text_to_graph_pipeline.chunk_classifier.heuristics import (
    default_topic,
    fallback_classify,
    summarize_tokens,
)

logger = logging.getLogger(__name__)

ClassifierCollaborator = Callable[[str, Optional[str]], Awaitable[Any]]


class ClassificationError(RuntimeError):
    """Raised when a classification collaborator returns an unusable response"""


def normalize_classification(raw: Any, chunk_text: str) -> ChunkClassification:
    """
    Apply defaults to a collaborator response.

    Args:
        raw: The collaborator's JSON-shaped response
        chunk_text: The chunk that was classified (source of the default summary)

    Raises:
        ClassificationError: If the response is not a mapping
    """
    if not isinstance(raw, Mapping):
        raise ClassificationError(f"Expected a JSON object, got {type(raw).__name__}")

    summary = raw.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = summarize_tokens(chunk_text)

    is_on_track = raw.get("isOnTrack")
    if not isinstance(is_on_track, bool):
        is_on_track = True

    topic = raw.get("topic")
    if not isinstance(topic, str) or not topic.strip():
        topic = default_topic(is_on_track)

    return ChunkClassification(
        summary=summary.strip(),
        is_on_track=is_on_track,
        topic=topic,
        source="collaborator",
    )


class ChunkClassifier:
    """
    classify(chunk_text, previous_label) -> ChunkClassification

    The collaborator is any awaitable callable taking (chunk_text, previous_label)
    and returning a JSON-shaped mapping. Errors, timeouts and malformed
    responses all end in the local heuristic; nothing propagates to the caller.
    """

    def __init__(
        self,
        collaborator: Optional[ClassifierCollaborator] = None,
        timeout_seconds: float = 10.0,
    ):
        self.collaborator = collaborator
        self.timeout_seconds = timeout_seconds
        self.fallback_count = 0

    async def classify(self, chunk_text: str, previous_label: Optional[str] = None) -> ChunkClassification:
        if self.collaborator is None:
            return fallback_classify(chunk_text, previous_label)

        try:
            raw = await asyncio.wait_for(
                self.collaborator(chunk_text, previous_label),
                timeout=self.timeout_seconds,
            )
            return normalize_classification(raw, chunk_text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.fallback_count += 1
            logger.warning(f"Chunk classification failed, using local heuristic: {type(e).__name__}: {e}")
            return fallback_classify(chunk_text, previous_label)
