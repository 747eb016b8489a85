"""
Unit tests for the in-memory conversation and transcript stores
"""

import pytest

from convomap.models import NodeRecord, TranscriptSegment
from convomap.storage import (
    InMemoryConversationStore,
    InMemoryTranscriptStore,
    RecordNotFoundError,
    create_stores,
)


def segment(i: int, text: str) -> TranscriptSegment:
    return TranscriptSegment(id=i, text=text, timestamp=f"00:0{i}")


class TestInMemoryConversationStore:

    @pytest.mark.asyncio
    async def test_create_uses_first_label_title(self):
        store = InMemoryConversationStore()
        conversation_id = await store.create_conversation("u1", "roadmap review")
        meta = await store.get_conversation(conversation_id)
        assert meta.title == "Roadmap review"
        assert meta.node_count == 0

    @pytest.mark.asyncio
    async def test_create_without_label_uses_provisional_title(self):
        store = InMemoryConversationStore()
        meta = await store.get_conversation(await store.create_conversation("u1"))
        assert meta.title.startswith("Conversation - ")

    @pytest.mark.asyncio
    async def test_append_counts_nodes_and_orders_by_index(self):
        store = InMemoryConversationStore()
        conversation_id = await store.create_conversation("u1", "start")
        await store.append_node(conversation_id, NodeRecord(label="second", branch_level=1, index=1))
        await store.append_node(conversation_id, NodeRecord(label="first", branch_level=0, index=0))

        records = await store.get_conversation_nodes(conversation_id)
        assert [r.label for r in records] == ["first", "second"]
        assert all(r.id and r.created_at for r in records)
        assert (await store.get_conversation(conversation_id)).node_count == 2

    @pytest.mark.asyncio
    async def test_finalize_replaces_title(self):
        store = InMemoryConversationStore()
        conversation_id = await store.create_conversation("u1", "start")
        title = await store.finalize_conversation(conversation_id, ["fix the bug", "fix the login bug", "deploy"])
        assert title == "Fix bug login"
        assert (await store.get_conversation(conversation_id)).title == "Fix bug login"

    @pytest.mark.asyncio
    async def test_list_is_per_owner_most_recent_first(self):
        store = InMemoryConversationStore()
        older = await store.create_conversation("u1", "older one")
        newer = await store.create_conversation("u1", "newer one")
        await store.create_conversation("u2", "someone else")
        await store.append_node(older, NodeRecord(label="bump", branch_level=0, index=0))

        listed = await store.list_conversations("u1")
        assert [meta.id for meta in listed] == [older, newer]
        assert len(await store.list_conversations("u1", limit=1)) == 1

    @pytest.mark.asyncio
    async def test_unknown_conversation(self):
        store = InMemoryConversationStore()
        assert await store.get_conversation("missing") is None
        with pytest.raises(RecordNotFoundError):
            await store.get_conversation_nodes("missing")
        with pytest.raises(RecordNotFoundError):
            await store.append_node("missing", NodeRecord(label="x", branch_level=0, index=0))


class TestInMemoryTranscriptStore:

    @pytest.mark.asyncio
    async def test_save_generates_title_from_first_segment(self):
        store = InMemoryTranscriptStore()
        transcript_id = await store.save_transcript("u1", [segment(1, "we talked about the new launch"), segment(2, "ok")])
        record = await store.get_transcript(transcript_id)
        assert record.title == "We talked about the new"
        assert record.user_id == "u1"
        assert [s.sentiment for s in record.segments] == ["neutral", "neutral"]

    @pytest.mark.asyncio
    async def test_explicit_title_wins(self):
        store = InMemoryTranscriptStore()
        record = await store.get_transcript(await store.save_transcript("u1", [], title="Standup"))
        assert record.title == "Standup"

    @pytest.mark.asyncio
    async def test_update_replaces_segments(self):
        store = InMemoryTranscriptStore()
        transcript_id = await store.save_transcript("u1", [segment(1, "draft")])
        await store.update_transcript(transcript_id, [segment(1, "final words"), segment(2, "more")])
        record = await store.get_transcript(transcript_id)
        assert [s.text for s in record.segments] == ["final words", "more"]
        assert record.title == "Final words"
        assert record.updated_at >= record.created_at

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self):
        with pytest.raises(RecordNotFoundError):
            await InMemoryTranscriptStore().update_transcript("missing", [])

    @pytest.mark.asyncio
    async def test_list_and_delete(self):
        store = InMemoryTranscriptStore()
        kept = await store.save_transcript("u1", [segment(1, "one")])
        removed = await store.save_transcript("u1", [segment(1, "two"), segment(2, "three")])
        await store.save_transcript("u2", [segment(1, "other")])

        await store.delete_transcript(removed)
        await store.delete_transcript("never-existed")

        listed = await store.get_user_transcripts("u1")
        assert [meta.id for meta in listed] == [kept]
        assert listed[0].segment_count == 1
        assert await store.get_transcript(removed) is None


class TestCreateStores:

    def test_memory_backend(self):
        conversations, transcripts = create_stores("memory")
        assert isinstance(conversations, InMemoryConversationStore)
        assert isinstance(transcripts, InMemoryTranscriptStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_stores("postgres")
