"""
Brain-wave style classification of a whole transcript (alpha / beta / gamma)
"""

import asyncio
import logging

from convomap.analysis.validation import reasoning_or_default, require_choice, require_confidence
from convomap.llm.llm_client import call_llm_json
from convomap.models import ConversationClassification

logger = logging.getLogger(__name__)

BRAIN_WAVES = ("alpha", "beta", "gamma")
FALLBACK_CONFIDENCE = 0.6
LONG_CONVERSATION_WORDS = 100
SHORT_CONVERSATION_WORDS = 50

BRAIN_WAVE_PROMPT = """
Analyze the following conversation transcript and classify it into one of three brain wave patterns:

ALPHA (8-12 Hz): Relaxed, calm, meditative states, creative thinking, daydreaming, light meditation
BETA (13-30 Hz): Active concentration, focused attention, problem-solving, alertness, active thinking
GAMMA (30-100 Hz): High-level cognitive processing, insight, peak performance, intense focus, complex problem solving

Transcript: "{transcript}"

Respond with ONLY a JSON object in this exact format:
{{
  "brainWave": "alpha|beta|gamma",
  "confidence": 0.85,
  "reasoning": "Brief explanation of why this classification was chosen"
}}

Consider the following factors:
- Energy level and intensity of the conversation
- Type of cognitive activity (creative, analytical, focused, relaxed)
- Emotional tone and engagement level
- Complexity of topics discussed
- Attention and focus patterns
"""


def fallback_brain_wave(transcript: str) -> ConversationClassification:
    """
    Longer conversations with questions -> beta, short calm ones -> alpha,
    everything else -> gamma.
    """
    word_count = len(transcript.split(" "))
    if word_count > LONG_CONVERSATION_WORDS and "?" in transcript:
        return ConversationClassification(
            brain_wave="beta",
            confidence=FALLBACK_CONFIDENCE,
            reasoning="Fallback classification: Active conversation with questions detected",
        )
    if word_count < SHORT_CONVERSATION_WORDS and "!" not in transcript:
        return ConversationClassification(
            brain_wave="alpha",
            confidence=FALLBACK_CONFIDENCE,
            reasoning="Fallback classification: Short, calm conversation detected",
        )
    return ConversationClassification(
        brain_wave="gamma",
        confidence=FALLBACK_CONFIDENCE,
        reasoning="Fallback classification: Intense or complex conversation detected",
    )


def parse_brain_wave(raw: dict) -> ConversationClassification:
    return ConversationClassification(
        brain_wave=require_choice(raw, "brainWave", BRAIN_WAVES),
        confidence=require_confidence(raw),
        reasoning=reasoning_or_default(raw),
    )


async def classify_conversation(transcript: str) -> ConversationClassification:
    try:
        raw = await call_llm_json(BRAIN_WAVE_PROMPT.format(transcript=transcript), "brain_wave")
        return parse_brain_wave(raw)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"Brain wave classification failed, using fallback: {type(e).__name__}: {e}")
        return fallback_brain_wave(transcript)
