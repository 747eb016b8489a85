from convomap.text_to_graph_pipeline.live_text.emphasis import (
    LiveToken,
    annotate_live_text,
    is_complex_word,
    score_word,
)

__all__ = ['LiveToken', 'annotate_live_text', 'is_complex_word', 'score_word']
