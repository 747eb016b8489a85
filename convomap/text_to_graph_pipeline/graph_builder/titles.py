"""
Conversation and transcript title helpers

Titles are best-effort and only ever written to persistence; they never
affect the node sequence.
"""

import re
from collections import Counter
from datetime import datetime
from typing import Optional, Sequence

TITLE_STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "of", "to", "in", "on",
    "for", "with", "at", "by", "from", "is", "are", "be",
})
MIN_TITLE_TOKEN_LENGTH = 3
TITLE_KEYWORD_COUNT = 3
TRANSCRIPT_TITLE_WORDS = 5

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now()).strftime("%b %d, %Y %H:%M")


def generate_provisional_title(now: Optional[datetime] = None) -> str:
    return f"Conversation - {_timestamp(now)}"


def title_from_first_label(first_label: Optional[str], now: Optional[datetime] = None) -> str:
    """Initial title for a new conversation: its first label when usable, else provisional"""
    if first_label and len(first_label.strip()) >= MIN_TITLE_TOKEN_LENGTH:
        return _capitalize_first(first_label.strip())
    return generate_provisional_title(now)


def title_keywords(labels: Sequence[str]) -> list[str]:
    """
    Most frequent non-stop-word tokens across the labels.
    Ties keep first-seen order (Counter preserves insertion order and sorted() is stable).
    """
    counts: Counter[str] = Counter()
    for label in labels:
        for token in _TOKEN_SPLIT.split(label.lower()):
            if not token or token in TITLE_STOP_WORDS or len(token) < MIN_TITLE_TOKEN_LENGTH:
                continue
            counts[token] += 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [token for token, _ in ranked[:TITLE_KEYWORD_COUNT]]


def generate_title_from_labels(labels: Sequence[str], now: Optional[datetime] = None) -> str:
    """
    Best-effort title computed when a session ends.

    Example: ["fix the bug", "fix the login bug", "deploy"] -> "Fix bug login"
    """
    keywords = title_keywords(labels)
    if not keywords:
        return generate_provisional_title(now)
    return _capitalize_first(" ".join(keywords))


def generate_transcript_title(segment_texts: Sequence[str], now: Optional[datetime] = None) -> str:
    if not segment_texts:
        return f"Transcript - {_timestamp(now)}"
    words = " ".join(segment_texts[0].split(" ")[:TRANSCRIPT_TITLE_WORDS])
    return _capitalize_first(words) if words else "Untitled Transcript"
