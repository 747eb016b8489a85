"""
Unit tests for CaptureSession: ticks, ordering, stop semantics and persistence side effects
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from convomap.models import NodeRecord
from convomap.sse import SSEEventEmitter
from convomap.storage import InMemoryConversationStore
from convomap.text_to_graph_pipeline.capture_session import CaptureSession, SessionState
from convomap.text_to_graph_pipeline.chunk_classifier import ChunkClassifier
from convomap.text_to_graph_pipeline.voice_to_text import CaptureEvent, PushCaptureSource


async def wait_until(predicate, timeout: float = 2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


def drain(queue: asyncio.Queue) -> list:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


def scripted_collaborator(answers):
    """Collaborator answering from a chunk -> response mapping"""
    async def collaborator(chunk, previous_label):
        return answers[chunk]
    return AsyncMock(side_effect=collaborator)


def make_session(collaborator=None, store=None, owner_id=None, **kwargs):
    queue: asyncio.Queue = asyncio.Queue()
    session = CaptureSession(
        ChunkClassifier(collaborator),
        PushCaptureSource(),
        store=store,
        owner_id=owner_id,
        emitter=SSEEventEmitter(queue),
        **kwargs,
    )
    return session, queue


async def say_and_tick(session: CaptureSession, text: str):
    session.handle_capture_event(CaptureEvent(text, True))
    return await session.on_tick()


class TestTicks:

    @pytest.mark.asyncio
    async def test_empty_buffer_tick_makes_no_call(self):
        collaborator = AsyncMock(return_value={"summary": "x"})
        session, _ = make_session(collaborator)

        assert await session.on_tick() is None

        collaborator.assert_not_awaited()
        assert len(session.graph) == 0

    @pytest.mark.asyncio
    async def test_interim_text_alone_makes_no_node(self):
        session, _ = make_session()
        session.handle_capture_event(CaptureEvent("thinking out loud", False))
        assert await session.on_tick() is None
        assert session.buffer.live_text == "thinking out loud"

    @pytest.mark.asyncio
    async def test_one_classification_per_non_empty_tick(self):
        collaborator = AsyncMock(return_value={"summary": "Plan", "isOnTrack": True})
        session, _ = make_session(collaborator)

        session.handle_capture_event(CaptureEvent("first part", True))
        session.handle_capture_event(CaptureEvent("second part", True))
        await session.on_tick()

        collaborator.assert_awaited_once_with("first part second part", None)

    @pytest.mark.asyncio
    async def test_branch_levels_follow_classifications(self):
        collaborator = scripted_collaborator({
            "a": {"summary": "A", "isOnTrack": True},
            "b": {"summary": "B", "isOnTrack": True},
            "c": {"summary": "C", "isOnTrack": False},
            "d": {"summary": "D", "isOnTrack": False},
            "e": {"summary": "E", "isOnTrack": True},
        })
        session, _ = make_session(collaborator)

        for text in "abcde":
            await say_and_tick(session, text)

        assert [node.branch_level for node in session.graph.nodes] == [0, 0, 1, 1, 0]
        assert session.graph.labels == ["A", "B", "C", "D", "E"]

    @pytest.mark.asyncio
    async def test_previous_label_is_passed_to_classifier(self):
        collaborator = scripted_collaborator({
            "one": {"summary": "First"},
            "two": {"summary": "Second"},
        })
        session, _ = make_session(collaborator)

        await say_and_tick(session, "one")
        await say_and_tick(session, "two")

        assert collaborator.await_args_list[1].args == ("two", "First")

    @pytest.mark.asyncio
    async def test_timeout_still_appends_a_valid_node(self):
        async def slow(chunk, previous):
            await asyncio.sleep(5)

        session, queue = make_session()
        session.classifier = ChunkClassifier(slow, timeout_seconds=0.05)

        node = await say_and_tick(session, "Anyway, the demo is tomorrow")

        assert node.label == "Anyway the demo is"
        assert node.branch_level == 0
        assert "classification_fallback" in [event["event"] for event in drain(queue)]

    @pytest.mark.asyncio
    async def test_appends_follow_completion_order(self):
        release_slow = asyncio.Event()

        async def collaborator(chunk, previous):
            if chunk == "slow chunk":
                await release_slow.wait()
            return {"summary": chunk.title(), "isOnTrack": True}

        session, _ = make_session(collaborator)
        session.handle_capture_event(CaptureEvent("slow chunk", True))
        slow_tick = asyncio.create_task(session.on_tick())
        await asyncio.sleep(0)

        await say_and_tick(session, "fast chunk")
        release_slow.set()
        await slow_tick

        assert session.graph.labels == ["Fast Chunk", "Slow Chunk"]
        assert [node.sequence_index for node in session.graph.nodes] == [0, 1]

    @pytest.mark.asyncio
    async def test_timer_drives_ticks(self):
        session, _ = make_session(chunk_interval=0.02)
        session.start()
        try:
            session.capture_source.push("timed chunk of speech")
            await wait_until(lambda: len(session.graph) == 1)
            assert session.graph.labels == ["timed chunk of speech"]
        finally:
            await session.stop()


class TestEvents:

    @pytest.mark.asyncio
    async def test_capture_and_append_events(self):
        session, queue = make_session()

        session.handle_capture_event(CaptureEvent("so exciting", False))
        session.handle_capture_event(CaptureEvent("so exciting news", True))
        await session.on_tick()

        events = drain(queue)
        assert [event["event"] for event in events] == ["live_text", "final_text", "node_appended"]
        assert events[0]["data"]["tokens"][0]["text"] == "so"
        assert events[2]["data"]["node"]["label"] == "so exciting news"
        assert all(event["data"]["sessionId"] == session.session_id for event in events)

    @pytest.mark.asyncio
    async def test_final_text_clears_live_text(self):
        session, _ = make_session()
        session.handle_capture_event(CaptureEvent("partial", False))
        session.handle_capture_event(CaptureEvent("partial result", True))
        assert session.buffer.live_text == ""


class TestStop:

    @pytest.mark.asyncio
    async def test_stop_discards_in_flight_classification(self):
        release = asyncio.Event()

        async def collaborator(chunk, previous):
            await release.wait()
            return {"summary": "Late", "isOnTrack": True}

        session, _ = make_session(collaborator)
        session.handle_capture_event(CaptureEvent("said just before stop", True))
        tick = asyncio.create_task(session.on_tick())
        await asyncio.sleep(0)

        await session.stop()
        release.set()

        assert await tick is None
        assert len(session.graph) == 0

    @pytest.mark.asyncio
    async def test_stop_cancels_timer_spawned_ticks(self):
        started = asyncio.Event()

        async def collaborator(chunk, previous):
            started.set()
            await asyncio.sleep(5)

        session, _ = make_session(collaborator, chunk_interval=0.01)
        session.start()
        session.capture_source.push("words")
        await asyncio.wait_for(started.wait(), timeout=2)

        await session.stop()

        assert len(session.graph) == 0
        assert session.state is SessionState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        store = InMemoryConversationStore()
        store.finalize_conversation = AsyncMock(wraps=store.finalize_conversation)
        session, queue = make_session(store=store, owner_id="owner-1")
        await say_and_tick(session, "fix the login bug")

        first = await session.stop()
        second = await session.stop()
        await session.wait_for_pending_writes(timeout=2)

        assert first == second == "Fix login bug"
        store.finalize_conversation.assert_awaited_once()
        assert [e["event"] for e in drain(queue)].count("session_stopped") == 1

    @pytest.mark.asyncio
    async def test_text_after_stop_is_ignored(self):
        session, _ = make_session()
        session.start()
        await session.stop()

        assert session.capture_source.push("too late") is False
        session.handle_capture_event(CaptureEvent("also late", True))
        assert session.buffer.get_buffer() == ""
        assert await session.on_tick() is None

    @pytest.mark.asyncio
    async def test_stop_without_nodes_gives_provisional_title(self):
        session, _ = make_session()
        title = await session.stop()
        assert title.startswith("Conversation - ")

    @pytest.mark.asyncio
    async def test_capture_error_stops_session(self):
        session, queue = make_session()
        session.start()

        session.capture_source.fail(RuntimeError("microphone unavailable"))
        await wait_until(lambda: session.title is not None)

        assert str(session.capture_error) == "microphone unavailable"
        events = [event["event"] for event in drain(queue)]
        assert "capture_failed" in events
        assert "session_stopped" in events

    @pytest.mark.asyncio
    async def test_capture_that_cannot_start_stops_session(self):
        class NoInputDevice(PushCaptureSource):
            def start(self, on_event, on_error):
                raise OSError("No Default Input Device Available")

        store = InMemoryConversationStore()
        queue: asyncio.Queue = asyncio.Queue()
        session = CaptureSession(
            ChunkClassifier(), NoInputDevice(), store=store, owner_id="u1", emitter=SSEEventEmitter(queue)
        )

        session.start()

        assert session.state is SessionState.STOPPED
        assert isinstance(session.capture_error, OSError)
        assert session.title.startswith("Conversation - ")
        assert [event["event"] for event in drain(queue)] == ["capture_failed", "session_stopped"]
        assert await session.stop() == session.title
        assert await session.wait_for_pending_writes(timeout=1)
        assert await store.list_conversations("u1") == []


class TestPersistence:

    @pytest.mark.asyncio
    async def test_nodes_and_title_are_persisted(self):
        store = InMemoryConversationStore()
        session, _ = make_session(store=store, owner_id="owner-1")

        await say_and_tick(session, "fix the bug")
        await say_and_tick(session, "but first coffee")
        await session.stop()
        assert await session.wait_for_pending_writes(timeout=2)

        conversations = await store.list_conversations("owner-1")
        assert len(conversations) == 1
        assert conversations[0].id == session.conversation_id
        assert conversations[0].node_count == 2
        assert conversations[0].title == "Fix bug first"

        records = await store.get_conversation_nodes(session.conversation_id)
        assert [(r.label, r.branch_level, r.index) for r in records] == [
            ("fix the bug", 0, 0),
            ("but first coffee", 1, 1),
        ]

    @pytest.mark.asyncio
    async def test_conversation_is_created_once_and_titled_from_first_label(self):
        store = InMemoryConversationStore()
        store.create_conversation = AsyncMock(wraps=store.create_conversation)
        session, _ = make_session(store=store, owner_id="owner-1")

        for text in ("quarterly planning", "hiring", "budget"):
            await say_and_tick(session, text)
        await session.wait_for_pending_writes(timeout=2)

        store.create_conversation.assert_awaited_once_with("owner-1", "quarterly planning")
        meta = await store.get_conversation(session.conversation_id)
        assert meta.title == "Quarterly planning"
        assert meta.node_count == 3

    @pytest.mark.asyncio
    async def test_no_owner_means_no_persistence(self):
        store = MagicMock()
        store.create_conversation = AsyncMock()
        session, _ = make_session(store=store)

        await say_and_tick(session, "private thoughts")
        await session.stop()

        store.create_conversation.assert_not_awaited()
        assert len(session.graph) == 1

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_the_node(self):
        store = MagicMock()
        store.create_conversation = AsyncMock(side_effect=RuntimeError("firestore unavailable"))
        store.append_node = AsyncMock()
        session, _ = make_session(store=store, owner_id="owner-1")

        node = await say_and_tick(session, "important point")
        assert await session.wait_for_pending_writes(timeout=2)

        assert node is not None
        assert session.graph.labels == ["important point"]
        assert session.conversation_id is None
        store.append_node.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_append_failure_is_swallowed(self):
        store = InMemoryConversationStore()
        store.append_node = AsyncMock(side_effect=RuntimeError("write failed"))
        session, _ = make_session(store=store, owner_id="owner-1")

        await say_and_tick(session, "first")
        await say_and_tick(session, "second")
        await session.stop()
        assert await session.wait_for_pending_writes(timeout=2)

        assert len(session.graph) == 2
        meta = await store.get_conversation(session.conversation_id)
        assert meta.title == "First second"

    @pytest.mark.asyncio
    async def test_load_replays_and_continues(self):
        store = InMemoryConversationStore()
        conversation_id = await store.create_conversation("owner-1", "opening topic")
        await store.append_node(conversation_id, NodeRecord(label="opening topic", branch_level=0, index=0))
        await store.append_node(conversation_id, NodeRecord(label="side note", branch_level=1, index=1))

        session, _ = make_session(store=store, owner_id="owner-1")
        assert await session.load(conversation_id) == 2

        node = await say_and_tick(session, "however another aside")
        await session.wait_for_pending_writes(timeout=2)

        assert node.branch_level == 1
        assert node.sequence_index == 2
        records = await store.get_conversation_nodes(conversation_id)
        assert [r.index for r in records] == [0, 1, 2]
        assert session.conversation_id == conversation_id

    @pytest.mark.asyncio
    async def test_load_requires_a_store(self):
        session, _ = make_session()
        with pytest.raises(RuntimeError):
            await session.load("anything")


class TestSnapshot:

    @pytest.mark.asyncio
    async def test_snapshot_contains_nodes_layout_and_viewport(self):
        session, _ = make_session()
        await say_and_tick(session, "first topic")
        session.viewport.wheel(-1, 0, 0)

        snapshot = session.snapshot()

        assert snapshot["state"] == "idle"
        assert snapshot["nodes"][0]["branchLevel"] == 0
        assert snapshot["layout"]["nodes"][0]["x"] == 80
        assert snapshot["viewport"]["scale"] == pytest.approx(1.1)
