"""
Persistence for conversations, nodes and transcripts
"""

import logging
from typing import Optional, Tuple

from convomap import settings
from convomap.storage.base import ConversationStore, RecordNotFoundError, TranscriptStore
from convomap.storage.memory_store import InMemoryConversationStore, InMemoryTranscriptStore

logger = logging.getLogger(__name__)


def create_stores(backend: Optional[str] = None) -> Tuple[ConversationStore, TranscriptStore]:
    """
    Build the conversation and transcript stores for the configured backend
    (STORAGE_BACKEND: memory | firestore).
    """
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.info("Using in-memory storage")
        return InMemoryConversationStore(), InMemoryTranscriptStore()
    if backend == "firestore":
        # imported lazily so the memory backend works without firebase credentials
        from convomap.storage.firestore_store import (
            FirestoreConversationStore,
            FirestoreTranscriptStore,
            get_firestore_client,
        )
        db = get_firestore_client(settings.FIREBASE_CREDENTIALS)
        logger.info("Using Firestore storage")
        return FirestoreConversationStore(db), FirestoreTranscriptStore(db)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    'ConversationStore',
    'TranscriptStore',
    'RecordNotFoundError',
    'InMemoryConversationStore',
    'InMemoryTranscriptStore',
    'create_stores',
]
