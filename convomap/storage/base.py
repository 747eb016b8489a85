"""
Persistence interfaces for conversations and transcripts

All methods are coroutines; implementations backed by blocking clients run
their calls in a worker thread.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from convomap.models import (
    ConversationMeta,
    NodeRecord,
    TranscriptMeta,
    TranscriptRecord,
    TranscriptSegment,
)


class RecordNotFoundError(LookupError):
    """Raised when a conversation or transcript id does not exist"""


class ConversationStore(ABC):
    """
    Conversations and their append-only node sequences.

    A conversation document holds {userId, title, createdAt, updatedAt, nodeCount};
    its nodes are {label, branchLevel, index, createdAt}, read back ordered by index.
    """

    @abstractmethod
    async def create_conversation(self, owner_id: str, first_label: Optional[str] = None) -> str:
        """Create a conversation titled from first_label (or a provisional title) and return its id"""

    @abstractmethod
    async def append_node(self, conversation_id: str, record: NodeRecord) -> None:
        """Store one node, increment nodeCount and bump updatedAt"""

    @abstractmethod
    async def finalize_conversation(self, conversation_id: str, labels: Sequence[str]) -> str:
        """Replace the title with one derived from labels and return it"""

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Optional[ConversationMeta]:
        pass

    @abstractmethod
    async def list_conversations(self, owner_id: str, limit: int = 20) -> List[ConversationMeta]:
        """Most recently updated first"""

    @abstractmethod
    async def get_conversation_nodes(self, conversation_id: str) -> List[NodeRecord]:
        """Persisted nodes ordered by index"""


class TranscriptStore(ABC):

    @abstractmethod
    async def save_transcript(
        self, user_id: str, segments: Sequence[TranscriptSegment], title: Optional[str] = None
    ) -> str:
        pass

    @abstractmethod
    async def update_transcript(
        self, transcript_id: str, segments: Sequence[TranscriptSegment], title: Optional[str] = None
    ) -> None:
        """Raises RecordNotFoundError for an unknown id"""

    @abstractmethod
    async def delete_transcript(self, transcript_id: str) -> None:
        pass

    @abstractmethod
    async def get_user_transcripts(self, user_id: str, limit: int = 50) -> List[TranscriptMeta]:
        pass

    @abstractmethod
    async def get_transcript(self, transcript_id: str) -> Optional[TranscriptRecord]:
        pass
