"""
Local chunk classification heuristic

Pure and deterministic: used when the external classifier fails and usable
standalone without network access.
"""

import re
from typing import Optional

from convomap.models import ChunkClassification

OFF_TOPIC_CUES = ("but", "however", "anyway", "side", "off", "tangent")
SUMMARY_TOKEN_LIMIT = 4
EMPTY_SUMMARY = "No content"
MAIN_TOPIC = "Main topic"
SIDE_TOPIC = "Side topic"

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9\s]")


def summarize_tokens(text: str, limit: int = SUMMARY_TOKEN_LIMIT) -> str:
    """First `limit` alphanumeric tokens of the text, punctuation stripped"""
    words = _NON_ALPHANUMERIC.sub(" ", text or "").split()
    return " ".join(words[:limit]) or EMPTY_SUMMARY


def is_off_track(text: str) -> bool:
    # substring match: "button" counts as containing "but"
    lowered = (text or "").lower()
    return any(cue in lowered for cue in OFF_TOPIC_CUES)


def default_topic(is_on_track: bool) -> str:
    return MAIN_TOPIC if is_on_track else SIDE_TOPIC


def fallback_classify(chunk_text: str, previous_label: Optional[str] = None) -> ChunkClassification:
    """
    Classify a chunk without any external call.

    previous_label is accepted for signature parity with the external
    classifier and does not influence the result.
    """
    on_track = not is_off_track(chunk_text)
    return ChunkClassification(
        summary=summarize_tokens(chunk_text),
        is_on_track=on_track,
        topic=default_topic(on_track),
        source="fallback",
    )
