"""
Unit tests for conversation and transcript titles
"""

from datetime import datetime

from convomap.text_to_graph_pipeline.graph_builder import (
    generate_provisional_title,
    generate_title_from_labels,
    generate_transcript_title,
    title_from_first_label,
)
from convomap.text_to_graph_pipeline.graph_builder.titles import title_keywords

NOW = datetime(2025, 3, 7, 14, 5)


class TestTitleFromLabels:

    def test_frequency_ranking_with_first_seen_ties(self):
        assert generate_title_from_labels(["fix the bug", "fix the login bug", "deploy"]) == "Fix bug login"

    def test_stop_words_and_short_tokens_are_dropped(self):
        assert title_keywords(["The API is on fire", "go to it"]) == ["api", "fire"]

    def test_tokens_split_on_non_alphanumerics(self):
        assert title_keywords(["release-notes/v2: draft"]) == ["release", "notes", "draft"]

    def test_no_labels_gives_provisional_title(self):
        assert generate_title_from_labels([], now=NOW) == "Conversation - Mar 07, 2025 14:05"

    def test_labels_without_surviving_tokens_give_provisional_title(self):
        assert generate_title_from_labels(["a b", "to be"], now=NOW) == "Conversation - Mar 07, 2025 14:05"

    def test_single_keyword(self):
        assert generate_title_from_labels(["Budget"]) == "Budget"


class TestProvisionalAndFirstLabelTitles:

    def test_provisional_format(self):
        assert generate_provisional_title(NOW) == "Conversation - Mar 07, 2025 14:05"

    def test_first_label_is_capitalized(self):
        assert title_from_first_label("quarterly planning") == "Quarterly planning"

    def test_short_first_label_uses_provisional(self):
        assert title_from_first_label("ok", now=NOW) == "Conversation - Mar 07, 2025 14:05"

    def test_missing_first_label_uses_provisional(self):
        assert title_from_first_label(None, now=NOW).startswith("Conversation - ")


class TestTranscriptTitle:

    def test_first_five_words_of_first_segment(self):
        title = generate_transcript_title(["today we talk about the launch plan", "second"])
        assert title == "Today we talk about the"

    def test_no_segments_gives_timestamp_title(self):
        assert generate_transcript_title([], now=NOW) == "Transcript - Mar 07, 2025 14:05"

    def test_empty_first_segment(self):
        assert generate_transcript_title([""]) == "Untitled Transcript"
