"""
In-process stores, used by default and in tests
"""

import asyncio
import itertools
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from convomap.models import (
    ConversationMeta,
    NodeRecord,
    TranscriptMeta,
    TranscriptRecord,
    TranscriptSegment,
)
from convomap.storage.base import ConversationStore, RecordNotFoundError, TranscriptStore
from convomap.text_to_graph_pipeline.graph_builder.titles import (
    generate_title_from_labels,
    generate_transcript_title,
    title_from_first_label,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class _StoredConversation:
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    node_count: int = 0
    nodes: List[NodeRecord] = field(default_factory=list)
    # tie-breaker for conversations updated within the same clock tick
    touched: int = 0


class InMemoryConversationStore(ConversationStore):

    def __init__(self):
        self._conversations: Dict[str, _StoredConversation] = {}
        self._clock = itertools.count(1)
        self._lock = asyncio.Lock()

    def _get(self, conversation_id: str) -> _StoredConversation:
        try:
            return self._conversations[conversation_id]
        except KeyError:
            raise RecordNotFoundError(f"Conversation {conversation_id} not found") from None

    async def create_conversation(self, owner_id: str, first_label: Optional[str] = None) -> str:
        now = _now()
        conversation_id = _new_id()
        async with self._lock:
            self._conversations[conversation_id] = _StoredConversation(
                user_id=owner_id,
                title=title_from_first_label(first_label),
                created_at=now,
                updated_at=now,
                touched=next(self._clock),
            )
        logger.info(f"Created conversation {conversation_id} for owner {owner_id}")
        return conversation_id

    async def append_node(self, conversation_id: str, record: NodeRecord) -> None:
        async with self._lock:
            conversation = self._get(conversation_id)
            stored = record.model_copy(update={
                "id": record.id or _new_id(),
                "created_at": record.created_at or _now(),
            })
            conversation.nodes.append(stored)
            conversation.node_count += 1
            conversation.updated_at = _now()
            conversation.touched = next(self._clock)

    async def finalize_conversation(self, conversation_id: str, labels: Sequence[str]) -> str:
        title = generate_title_from_labels(labels)
        async with self._lock:
            conversation = self._get(conversation_id)
            conversation.title = title
            conversation.updated_at = _now()
            conversation.touched = next(self._clock)
        logger.info(f"Finalized conversation {conversation_id} as '{title}'")
        return title

    async def get_conversation(self, conversation_id: str) -> Optional[ConversationMeta]:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        return ConversationMeta(
            id=conversation_id,
            title=conversation.title,
            updated_at=conversation.updated_at,
            node_count=conversation.node_count,
        )

    async def list_conversations(self, owner_id: str, limit: int = 20) -> List[ConversationMeta]:
        owned = [
            (conversation_id, conversation)
            for conversation_id, conversation in self._conversations.items()
            if conversation.user_id == owner_id
        ]
        owned.sort(key=lambda item: (item[1].updated_at, item[1].touched), reverse=True)
        return [
            ConversationMeta(
                id=conversation_id,
                title=conversation.title,
                updated_at=conversation.updated_at,
                node_count=conversation.node_count,
            )
            for conversation_id, conversation in owned[:limit]
        ]

    async def get_conversation_nodes(self, conversation_id: str) -> List[NodeRecord]:
        conversation = self._get(conversation_id)
        return sorted(conversation.nodes, key=lambda record: record.index)


class InMemoryTranscriptStore(TranscriptStore):

    def __init__(self):
        self._transcripts: Dict[str, TranscriptRecord] = {}

    async def save_transcript(
        self, user_id: str, segments: Sequence[TranscriptSegment], title: Optional[str] = None
    ) -> str:
        now = _now()
        transcript_id = _new_id()
        self._transcripts[transcript_id] = TranscriptRecord(
            id=transcript_id,
            user_id=user_id,
            title=title or generate_transcript_title([segment.text for segment in segments]),
            segments=list(segments),
            created_at=now,
            updated_at=now,
        )
        logger.info(f"Saved transcript {transcript_id} with {len(segments)} segments")
        return transcript_id

    async def update_transcript(
        self, transcript_id: str, segments: Sequence[TranscriptSegment], title: Optional[str] = None
    ) -> None:
        existing = self._transcripts.get(transcript_id)
        if existing is None:
            raise RecordNotFoundError(f"Transcript {transcript_id} not found")
        self._transcripts[transcript_id] = existing.model_copy(update={
            "segments": list(segments),
            "title": title or generate_transcript_title([segment.text for segment in segments]),
            "updated_at": _now(),
        })

    async def delete_transcript(self, transcript_id: str) -> None:
        # deleting a missing document is a no-op, as in Firestore
        self._transcripts.pop(transcript_id, None)

    async def get_user_transcripts(self, user_id: str, limit: int = 50) -> List[TranscriptMeta]:
        owned = [record for record in self._transcripts.values() if record.user_id == user_id]
        owned.sort(key=lambda record: record.updated_at, reverse=True)
        return [
            TranscriptMeta(
                id=record.id,
                title=record.title,
                segment_count=len(record.segments),
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            for record in owned[:limit]
        ]

    async def get_transcript(self, transcript_id: str) -> Optional[TranscriptRecord]:
        return self._transcripts.get(transcript_id)
