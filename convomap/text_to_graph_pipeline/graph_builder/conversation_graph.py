import logging
import uuid
from typing import Callable, Iterable, List, Optional

from convomap.models import ChunkClassification, ConversationNode, NodeRecord

logger = logging.getLogger(__name__)


def generate_node_id() -> str:
    return uuid.uuid4().hex[:12]


class ConversationGraph:
    """
    Append-only node sequence of one conversation.

    Invariants:
    - nodes[i].sequence_index == i
    - nodes[0].branch_level == 0
    - nodes are never removed, reordered or mutated

    The branch level of a new node depends only on its classification and the
    current tail, so replaying a persisted sequence reproduces the same graph.
    """

    def __init__(self, conversation_id: Optional[str] = None, id_factory: Callable[[], str] = generate_node_id):
        self.conversation_id = conversation_id
        self._nodes: List[ConversationNode] = []
        self._id_factory = id_factory

    @property
    def nodes(self) -> tuple[ConversationNode, ...]:
        return tuple(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def last_node(self) -> Optional[ConversationNode]:
        return self._nodes[-1] if self._nodes else None

    @property
    def last_label(self) -> Optional[str]:
        """Label of the most recent node; the previous label for the next classification"""
        last = self.last_node
        return last.label if last else None

    @property
    def labels(self) -> List[str]:
        return [node.label for node in self._nodes]

    def next_branch_level(self, is_on_track: bool) -> int:
        last = self.last_node
        if is_on_track or last is None:
            return 0
        # a branch keeps its depth; leaving the trunk always opens depth 1
        return last.branch_level if last.branch_level > 0 else 1

    def append_chunk(self, classification: ChunkClassification) -> ConversationNode:
        """
        Append the node for one classified chunk. Sole mutator of the sequence.

        Returns:
            The newly created node
        """
        node = ConversationNode(
            id=self._id_factory(),
            label=classification.summary,
            branch_level=self.next_branch_level(classification.is_on_track),
            sequence_index=len(self._nodes),
        )
        self._nodes.append(node)
        logger.info(
            f"Appended node {node.sequence_index} '{node.label}' at branch level {node.branch_level}"
            f" ({'on-track' if classification.is_on_track else 'branch'})"
        )
        return node

    def replay(self, records: Iterable[NodeRecord]) -> None:
        """
        Replace the sequence with previously persisted nodes.

        Records are ordered by their stored index and renumbered from 0, so a
        lost write leaves no gap in sequence_index.
        """
        ordered = sorted(records, key=lambda record: record.index)
        nodes = []
        for position, record in enumerate(ordered):
            if record.index != position:
                logger.warning(f"Persisted node index {record.index} replayed at position {position}")
            nodes.append(ConversationNode(
                id=record.id or str(record.index),
                label=record.label,
                branch_level=record.branch_level,
                sequence_index=position,
            ))
        self._nodes = nodes
        logger.info(f"Replayed {len(nodes)} nodes for conversation {self.conversation_id}")

    @classmethod
    def from_records(cls, records: Iterable[NodeRecord], conversation_id: Optional[str] = None) -> "ConversationGraph":
        graph = cls(conversation_id=conversation_id)
        graph.replay(records)
        return graph
