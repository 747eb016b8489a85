"""
Capture Session
Owns one conversation-mapping session: capture source, chunk buffer, timer,
graph and the persistence side effects of appending nodes.

Flow:
    capture source -> CaptureBuffer -> (every chunk_interval) ChunkClassifier
    -> ConversationGraph.append_chunk -> fire-and-forget persistence
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Coroutine, Optional, Set

from convomap import settings
from convomap.models import ConversationNode
from convomap.sse import SSEEventEmitter, SSEEventType
from convomap.storage.base import ConversationStore
from convomap.text_to_graph_pipeline.capture_buffer import CaptureBuffer
from convomap.text_to_graph_pipeline.chunk_classifier import ChunkClassifier
from convomap.text_to_graph_pipeline.graph_builder import ConversationGraph, generate_title_from_labels
from convomap.text_to_graph_pipeline.layout import LayoutResult, compute_layout
from convomap.text_to_graph_pipeline.live_text import annotate_live_text
from convomap.text_to_graph_pipeline.viewport import ViewportController
from convomap.text_to_graph_pipeline.voice_to_text import CaptureEvent, CaptureSource

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    STOPPED = "stopped"


class CaptureSession:
    """
    A single capture session. All methods run on the event loop thread.

    - Timer ticks spawn independent chunk tasks, so a slow classification never
      delays the next tick. Appends happen in classification completion order,
      serialized by an asyncio.Lock and always reading the latest tail.
    - Persistence is fire-and-forget: failures are logged and never undo an
      in-memory append. The conversation record is created lazily by the first
      node write.
    - stop() is idempotent: it finalizes exactly once, and classifications that
      complete afterwards are discarded.
    """

    def __init__(
        self,
        classifier: ChunkClassifier,
        capture_source: CaptureSource,
        store: Optional[ConversationStore] = None,
        owner_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        emitter: Optional[SSEEventEmitter] = None,
        chunk_interval: Optional[float] = None,
        session_id: Optional[str] = None,
    ):
        """
        Args:
            classifier: Chunk classifier adapter
            capture_source: Where transcription events come from
            store: Conversation persistence; None keeps the session in memory only
            owner_id: Owner of the persisted conversation; without one nothing is persisted
            conversation_id: Existing conversation to continue (call load() to replay it)
            emitter: Optional SSE emitter for progress events
            chunk_interval: Seconds between chunk ticks (default: CHUNK_INTERVAL_SECONDS)
            session_id: Optional explicit id
        """
        self.session_id = session_id or uuid.uuid4().hex
        self.classifier = classifier
        self.capture_source = capture_source
        self.store = store
        self.owner_id = owner_id
        self.conversation_id = conversation_id
        self.emitter = emitter
        self.chunk_interval = chunk_interval or settings.CHUNK_INTERVAL_SECONDS

        self.buffer = CaptureBuffer()
        self.graph = ConversationGraph(conversation_id)
        self.viewport = ViewportController()

        self.state = SessionState.IDLE
        self.capture_error: Optional[Exception] = None
        self.title: Optional[str] = None

        # bumped on stop; chunk tasks started under an older generation are discarded
        self._generation = 0
        self._append_lock = asyncio.Lock()
        self._conversation_lock = asyncio.Lock()
        self._timer_task: Optional[asyncio.Task] = None
        self._chunk_tasks: Set[asyncio.Task] = set()
        self._pending_writes: Set[asyncio.Task] = set()
        self._background_tasks: Set[asyncio.Task] = set()

    # ==================== LIFECYCLE ====================

    @property
    def is_stopped(self) -> bool:
        return self.state is SessionState.STOPPED

    def start(self) -> None:
        """Start capture and the chunk timer. Must be called with a running event loop."""
        if self.state is not SessionState.IDLE:
            logger.warning(f"Session {self.session_id} already {self.state.value}, start ignored")
            return

        try:
            self.capture_source.start(self.handle_capture_event, self.handle_capture_error)
        except Exception as e:
            logger.error(f"Capture unavailable for session {self.session_id}: {e}", exc_info=True)
            self.capture_error = e
            self._publish(SSEEventType.CAPTURE_FAILED, {"error": str(e)})
            self._mark_stopped()
            self._finalize()
            return

        self.state = SessionState.CAPTURING
        self._timer_task = asyncio.create_task(self._run_timer())
        logger.info(f"Session {self.session_id} capturing, chunk interval {self.chunk_interval}s")

    async def load(self, conversation_id: str) -> int:
        """
        Replay a persisted conversation into this session's graph.

        Returns:
            The number of replayed nodes
        """
        if self.store is None:
            raise RuntimeError("Cannot load a conversation without a store")
        records = await self.store.get_conversation_nodes(conversation_id)
        self.conversation_id = conversation_id
        self.graph.conversation_id = conversation_id
        self.graph.replay(records)
        return len(self.graph)

    async def stop(self) -> str:
        """
        Stop capture and the timer, discard in-flight classifications and
        finalize the conversation title. A second call returns the same title.
        """
        if self.is_stopped:
            return self.title

        self._mark_stopped()

        if self._timer_task is not None:
            self._timer_task.cancel()
        self.capture_source.stop()

        current = asyncio.current_task()
        in_flight = [task for task in self._chunk_tasks if task is not current]
        for task in in_flight:
            task.cancel()
        cancelled = [self._timer_task] if self._timer_task is not None else []
        await asyncio.gather(*cancelled, *in_flight, return_exceptions=True)
        return self._finalize()

    def _mark_stopped(self) -> None:
        self.state = SessionState.STOPPED
        self._generation += 1

    def _finalize(self) -> str:
        """Title the conversation from the nodes present now; runs exactly once per session"""
        labels = self.graph.labels
        self.title = generate_title_from_labels(labels)
        if self.store is not None and self.owner_id is not None:
            self._schedule_write(self._persist_finalize(labels))

        logger.info(f"Session {self.session_id} stopped with {len(labels)} nodes, title '{self.title}'")
        self._publish(SSEEventType.SESSION_STOPPED, {
            "title": self.title,
            "nodeCount": len(labels),
            "captureError": str(self.capture_error) if self.capture_error else None,
        })
        return self.title

    async def wait_for_pending_writes(self, timeout: Optional[float] = None) -> bool:
        """
        Wait (bounded) for outstanding fire-and-forget persistence.

        Returns:
            True when every write finished within the timeout
        """
        pending = [task for task in self._pending_writes if not task.done()]
        if not pending:
            return True
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} persistence writes still pending after {timeout}s")
            return False
        return True

    # ==================== CAPTURE ====================

    def handle_capture_event(self, event: CaptureEvent) -> None:
        if self.is_stopped:
            return

        if event.is_final:
            self.buffer.add_final_text(event.text)
            self.buffer.set_interim_text("")
            self._publish(SSEEventType.FINAL_TEXT, {"text": event.text})
        else:
            self.buffer.set_interim_text(event.text)
            self._publish(SSEEventType.LIVE_TEXT, {
                "text": self.buffer.live_text,
                "tokens": [token.to_dict() for token in annotate_live_text(self.buffer.live_text)],
            })

    def handle_capture_error(self, error: Exception) -> None:
        """A failed capture ends the session"""
        if self.is_stopped:
            return
        logger.error(f"Capture failed for session {self.session_id}: {error}")
        self.capture_error = error
        self._publish(SSEEventType.CAPTURE_FAILED, {"error": str(error)})
        self._spawn(self.stop(), self._background_tasks)

    # ==================== CHUNKS ====================

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.chunk_interval)
            self._spawn(self.on_tick(), self._chunk_tasks)

    async def on_tick(self) -> Optional[ConversationNode]:
        """
        Turn the buffered text into at most one node.

        Returns:
            The appended node, or None for an empty buffer or a discarded result
        """
        if self.is_stopped:
            return None

        chunk = self.buffer.extract()
        if chunk is None:
            return None

        generation = self._generation
        classification = await self.classifier.classify(chunk, self.graph.last_label)

        async with self._append_lock:
            if self.is_stopped or generation != self._generation:
                logger.info(f"Discarding classification of '{chunk[:40]}' completed after stop")
                return None
            node = self.graph.append_chunk(classification)

        if classification.source == "fallback" and self.classifier.collaborator is not None:
            self._publish(SSEEventType.CLASSIFICATION_FALLBACK, {"sequenceIndex": node.sequence_index})
        self._publish(SSEEventType.NODE_APPENDED, {
            "node": node.to_wire(),
            "isOnTrack": classification.is_on_track,
            "topic": classification.topic,
        })

        if self.store is not None and self.owner_id is not None:
            self._schedule_write(self._persist_node(node))
        return node

    # ==================== PERSISTENCE ====================

    async def _ensure_conversation(self, first_label: str) -> str:
        async with self._conversation_lock:
            if self.conversation_id is None:
                self.conversation_id = await self.store.create_conversation(self.owner_id, first_label)
                self.graph.conversation_id = self.conversation_id
            return self.conversation_id

    async def _persist_node(self, node: ConversationNode) -> None:
        try:
            conversation_id = await self._ensure_conversation(node.label)
            await self.store.append_node(conversation_id, node.to_record())
        except Exception as e:
            logger.warning(f"Failed to persist node {node.sequence_index} of session {self.session_id}: {e}",
                           exc_info=True)

    async def _persist_finalize(self, labels: list[str]) -> None:
        # node writes issued before stop land before the title update
        earlier = [task for task in self._pending_writes if task is not asyncio.current_task()]
        if earlier:
            await asyncio.gather(*earlier, return_exceptions=True)
        if self.conversation_id is None:
            return
        try:
            await self.store.finalize_conversation(self.conversation_id, labels)
        except Exception as e:
            logger.warning(f"Failed to finalize conversation {self.conversation_id}: {e}", exc_info=True)

    def _schedule_write(self, coro: Coroutine[Any, Any, None]) -> None:
        self._spawn(coro, self._pending_writes)

    @staticmethod
    def _spawn(coro: Coroutine[Any, Any, Any], registry: Set[asyncio.Task]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        registry.add(task)
        task.add_done_callback(registry.discard)
        return task

    # ==================== VIEW ====================

    def _publish(self, event_type: SSEEventType, data: dict[str, Any]) -> None:
        if self.emitter is not None:
            self.emitter.publish(event_type, {"sessionId": self.session_id, **data})

    def layout(self) -> LayoutResult:
        return compute_layout(self.graph.nodes)

    def snapshot(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "conversationId": self.conversation_id,
            "state": self.state.value,
            "title": self.title,
            "liveText": self.buffer.live_text,
            "nodes": [node.to_wire() for node in self.graph.nodes],
            "layout": self.layout().to_dict(),
            "viewport": self.viewport.to_dict(),
            "captureError": str(self.capture_error) if self.capture_error else None,
        }
