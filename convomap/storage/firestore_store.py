"""
Firestore-backed stores (firebase-admin)

Collections:
    conversations/{id}            {userId, title, createdAt, updatedAt, nodeCount}
    conversations/{id}/nodes/{id} {label, branchLevel, index, createdAt}
    transcripts/{id}              {userId, title, segments, createdAt, updatedAt}

The firebase-admin client is blocking, so every call runs via asyncio.to_thread.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, firestore

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

CONVERSATIONS = "conversations"
NODES = "nodes"
TRANSCRIPTS = "transcripts"


def get_firestore_client(credentials_path: Optional[str] = None):
    """
    Initialize the default firebase app once and return a Firestore client.
    Without a credentials path, application default credentials are used.
    """
    if not firebase_admin._apps:
        cred = credentials.Certificate(credentials_path) if credentials_path else None
        firebase_admin.initialize_app(cred)
        logger.info("Initialized firebase app")
    return firestore.client()


class FirestoreConversationStore(ConversationStore):

    def __init__(self, db):
        self.db = db

    def _conversation_ref(self, conversation_id: str):
        return self.db.collection(CONVERSATIONS).document(conversation_id)

    async def create_conversation(self, owner_id: str, first_label: Optional[str] = None) -> str:
        doc = {
            "userId": owner_id,
            "title": title_from_first_label(first_label),
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
            "nodeCount": 0,
        }
        _, ref = await asyncio.to_thread(self.db.collection(CONVERSATIONS).add, doc)
        logger.info(f"Created conversation {ref.id} for owner {owner_id}")
        return ref.id

    async def append_node(self, conversation_id: str, record: NodeRecord) -> None:
        payload = {
            "label": record.label,
            "branchLevel": record.branch_level,
            "index": record.index,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        conversation_ref = self._conversation_ref(conversation_id)
        await asyncio.to_thread(conversation_ref.collection(NODES).add, payload)
        await asyncio.to_thread(
            conversation_ref.update,
            {"nodeCount": firestore.Increment(1), "updatedAt": firestore.SERVER_TIMESTAMP},
        )

    async def finalize_conversation(self, conversation_id: str, labels: Sequence[str]) -> str:
        title = generate_title_from_labels(labels)
        await asyncio.to_thread(
            self._conversation_ref(conversation_id).update,
            {"title": title, "updatedAt": firestore.SERVER_TIMESTAMP},
        )
        logger.info(f"Finalized conversation {conversation_id} as '{title}'")
        return title

    async def get_conversation(self, conversation_id: str) -> Optional[ConversationMeta]:
        snap = await asyncio.to_thread(self._conversation_ref(conversation_id).get)
        if not snap.exists:
            return None
        return self._to_meta(snap)

    async def list_conversations(self, owner_id: str, limit: int = 20) -> List[ConversationMeta]:
        query = (
            self.db.collection(CONVERSATIONS)
            .where("userId", "==", owner_id)
            .order_by("updatedAt", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        docs = await asyncio.to_thread(lambda: list(query.stream()))
        return [self._to_meta(doc) for doc in docs]

    async def get_conversation_nodes(self, conversation_id: str) -> List[NodeRecord]:
        query = self._conversation_ref(conversation_id).collection(NODES).order_by("index")
        docs = await asyncio.to_thread(lambda: list(query.stream()))
        return [NodeRecord(id=doc.id, **(doc.to_dict() or {})) for doc in docs]

    @staticmethod
    def _to_meta(snap) -> ConversationMeta:
        data = snap.to_dict() or {}
        return ConversationMeta(
            id=snap.id,
            title=data.get("title") or "Untitled conversation",
            updated_at=data.get("updatedAt"),
            node_count=data.get("nodeCount", 0),
        )


class FirestoreTranscriptStore(TranscriptStore):

    def __init__(self, db):
        self.db = db

    def _transcript_ref(self, transcript_id: str):
        return self.db.collection(TRANSCRIPTS).document(transcript_id)

    async def save_transcript(
        self, user_id: str, segments: Sequence[TranscriptSegment], title: Optional[str] = None
    ) -> str:
        doc = {
            "userId": user_id,
            "title": title or generate_transcript_title([segment.text for segment in segments]),
            "segments": [segment.to_wire() for segment in segments],
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        _, ref = await asyncio.to_thread(self.db.collection(TRANSCRIPTS).add, doc)
        logger.info(f"Saved transcript {ref.id} with {len(segments)} segments")
        return ref.id

    async def update_transcript(
        self, transcript_id: str, segments: Sequence[TranscriptSegment], title: Optional[str] = None
    ) -> None:
        ref = self._transcript_ref(transcript_id)
        snap = await asyncio.to_thread(ref.get)
        if not snap.exists:
            raise RecordNotFoundError(f"Transcript {transcript_id} not found")
        await asyncio.to_thread(ref.update, {
            "segments": [segment.to_wire() for segment in segments],
            "title": title or generate_transcript_title([segment.text for segment in segments]),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        })

    async def delete_transcript(self, transcript_id: str) -> None:
        await asyncio.to_thread(self._transcript_ref(transcript_id).delete)

    async def get_user_transcripts(self, user_id: str, limit: int = 50) -> List[TranscriptMeta]:
        # no order_by: combining it with the userId filter needs a composite index
        query = self.db.collection(TRANSCRIPTS).where("userId", "==", user_id).limit(limit)
        docs = await asyncio.to_thread(lambda: list(query.stream()))
        metas = []
        for doc in docs:
            data = doc.to_dict() or {}
            metas.append(TranscriptMeta(
                id=doc.id,
                title=data.get("title") or "Untitled Transcript",
                segment_count=len(data.get("segments") or []),
                created_at=data.get("createdAt"),
                updated_at=data.get("updatedAt"),
            ))
        return metas

    async def get_transcript(self, transcript_id: str) -> Optional[TranscriptRecord]:
        snap = await asyncio.to_thread(self._transcript_ref(transcript_id).get)
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        return TranscriptRecord(
            id=snap.id,
            user_id=data.get("userId", ""),
            title=data.get("title", ""),
            segments=data.get("segments") or [],
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )
