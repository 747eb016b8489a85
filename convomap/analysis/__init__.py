"""
Transcript analysis: segment sentiment and brain-wave classification
"""

from convomap.analysis.brain_wave import classify_conversation, fallback_brain_wave
from convomap.analysis.sentiment import analyze_sentiment, fallback_sentiment, tag_segment_sentiments

__all__ = [
    'analyze_sentiment',
    'classify_conversation',
    'fallback_brain_wave',
    'fallback_sentiment',
    'tag_segment_sentiments',
]
