"""
Sentiment of transcript text

Gemini is asked first; any failure (missing key, API error, invalid answer)
falls back to counting positive and negative cue words.
"""

import asyncio
import logging
from typing import List, Sequence

from convomap.analysis.validation import reasoning_or_default, require_choice, require_confidence
from convomap.llm.llm_client import call_llm_json
from convomap.models import SentimentAnalysis, TranscriptSegment

logger = logging.getLogger(__name__)

SENTIMENTS = ("positive", "negative", "neutral")
FALLBACK_CONFIDENCE = 0.6

POSITIVE_CUES = (
    "good", "great", "excellent", "amazing", "wonderful", "happy", "love", "like", "enjoy",
    "pleased", "satisfied", "excited", "optimistic", "confident", "successful",
)
NEGATIVE_CUES = (
    "bad", "terrible", "awful", "hate", "dislike", "angry", "sad", "frustrated", "disappointed",
    "worried", "anxious", "concerned", "problem", "issue", "difficult",
)

SENTIMENT_PROMPT = """
Analyze the sentiment of the following text segment and classify it as positive, negative, or neutral:

Text: "{text}"

Consider the following factors:
- Emotional tone and language used
- Positive or negative words and phrases
- Overall emotional context
- Subtle emotional indicators

Respond with ONLY a JSON object in this exact format:
{{
  "sentiment": "positive|negative|neutral",
  "confidence": 0.85,
  "reasoning": "Brief explanation of why this sentiment was chosen"
}}

Guidelines:
- POSITIVE: Happy, excited, optimistic, satisfied, grateful, enthusiastic, confident
- NEGATIVE: Sad, angry, frustrated, disappointed, worried, anxious, critical
- NEUTRAL: Factual, informational, balanced, neither clearly positive nor negative
"""


def fallback_sentiment(text: str) -> SentimentAnalysis:
    # substring match, so "unlike" counts for "like"
    lowered = text.lower()
    positive = sum(1 for cue in POSITIVE_CUES if cue in lowered)
    negative = sum(1 for cue in NEGATIVE_CUES if cue in lowered)

    if positive > negative:
        return SentimentAnalysis(
            sentiment="positive",
            confidence=FALLBACK_CONFIDENCE,
            reasoning="Fallback analysis: More positive words detected",
        )
    if negative > positive:
        return SentimentAnalysis(
            sentiment="negative",
            confidence=FALLBACK_CONFIDENCE,
            reasoning="Fallback analysis: More negative words detected",
        )
    return SentimentAnalysis(
        sentiment="neutral",
        confidence=FALLBACK_CONFIDENCE,
        reasoning="Fallback analysis: Balanced or neutral language detected",
    )


def parse_sentiment(raw: dict) -> SentimentAnalysis:
    """Raises ValueError for an unknown sentiment or an out-of-range confidence"""
    return SentimentAnalysis(
        sentiment=require_choice(raw, "sentiment", SENTIMENTS),
        confidence=require_confidence(raw),
        reasoning=reasoning_or_default(raw),
    )


async def analyze_sentiment(text: str) -> SentimentAnalysis:
    try:
        raw = await call_llm_json(SENTIMENT_PROMPT.format(text=text), "sentiment")
        return parse_sentiment(raw)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"Sentiment analysis failed, using fallback: {type(e).__name__}: {e}")
        return fallback_sentiment(text)


async def tag_segment_sentiments(segments: Sequence[TranscriptSegment]) -> List[TranscriptSegment]:
    """
    Copies of the segments with sentiment and insight filled in.
    Segments are analyzed concurrently; order is preserved.
    """
    analyses = await asyncio.gather(*(analyze_sentiment(segment.text) for segment in segments))
    return [
        segment.model_copy(update={"sentiment": analysis.sentiment, "insight": analysis.reasoning})
        for segment, analysis in zip(segments, analyses)
    ]
