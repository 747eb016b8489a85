"""
Data models for ConvoMap
Type-safe Pydantic models shared by the pipeline, storage and HTTP layers.
Wire names are camelCase (aliases); Python attributes are snake_case.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SentimentType = Literal["positive", "negative", "neutral"]
BrainWaveType = Literal["alpha", "beta", "gamma"]


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases"""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ChunkClassification(CamelModel):
    """Normalized result of classifying one transcript chunk"""
    summary: str = Field(description="Short label for the chunk")
    is_on_track: bool = Field(alias="isOnTrack", description="True when the chunk continues the current line")
    topic: Optional[str] = Field(default=None, description="Short topic name, if the classifier gave one")
    source: Literal["collaborator", "fallback"] = Field(
        default="collaborator", description="Whether the result came from the external classifier or the heuristic"
    )


class ConversationNode(CamelModel):
    """
    One node of the conversation graph. Created once by the graph builder,
    never mutated afterwards.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    label: str
    branch_level: int = Field(alias="branchLevel", ge=0)
    sequence_index: int = Field(alias="sequenceIndex", ge=0)

    def to_record(self) -> "NodeRecord":
        return NodeRecord(id=self.id, label=self.label, branch_level=self.branch_level, index=self.sequence_index)


class NodeRecord(CamelModel):
    """Persisted form of a node: {label, branchLevel, index}"""
    id: Optional[str] = None
    label: str
    branch_level: int = Field(alias="branchLevel", ge=0)
    index: int = Field(ge=0)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class ConversationMeta(CamelModel):
    id: str
    title: str
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    node_count: int = Field(default=0, alias="nodeCount")


class TranscriptSegment(CamelModel):
    """A timestamped piece of recorded transcript with its sentiment tag"""
    id: int
    text: str
    timestamp: str
    sentiment: SentimentType = "neutral"
    insight: str = ""


class TranscriptRecord(CamelModel):
    id: Optional[str] = None
    user_id: str = Field(alias="userId")
    title: str
    segments: List[TranscriptSegment] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class TranscriptMeta(CamelModel):
    id: str
    title: str
    segment_count: int = Field(default=0, alias="segmentCount")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class SentimentAnalysis(CamelModel):
    sentiment: SentimentType
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = "No reasoning provided"


class ConversationClassification(CamelModel):
    """Brain-wave style classification of a whole transcript"""
    brain_wave: BrainWaveType = Field(alias="brainWave")
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = "No reasoning provided"
