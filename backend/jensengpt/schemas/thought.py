"""
Thought and idea Pydantic schemas.
"""

from pydantic import AliasChoices, Field, JsonValue
from typing import Optional, List, Dict, Literal
from datetime import datetime

from .common import CamelModel


ThoughtType = Literal["concept", "question", "insight", "observation", "hypothesis", "connection"]
IdeaStatus = Literal["draft", "developing", "refined", "finalized", "archived"]

JsonObject = Dict[str, JsonValue]

DEFAULT_USER_ID = "default-user"


def _metadata_field():
    # The ORM attribute is metadata_ (metadata is reserved on declarative models)
    return Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
        serialization_alias="metadata",
    )


class ThoughtCreate(CamelModel):
    """Schema for creating a thought."""
    user_id: str = DEFAULT_USER_ID
    content: str = Field(..., min_length=1)
    type: ThoughtType
    tags: List[str] = Field(default_factory=list)
    source: Optional[str] = None
    parent_id: Optional[int] = None
    conversation_id: Optional[str] = None
    extensions: Optional[JsonObject] = None
    connections: Optional[JsonObject] = None
    metadata: Optional[JsonObject] = None


class ThoughtUpdate(CamelModel):
    """Schema for updating a thought."""
    content: Optional[str] = Field(None, min_length=1)
    type: Optional[ThoughtType] = None
    tags: Optional[List[str]] = None
    extensions: Optional[JsonObject] = None
    connections: Optional[JsonObject] = None
    metadata: Optional[JsonObject] = None


class ThoughtResponse(CamelModel):
    """Thought response schema."""
    id: int
    user_id: str
    content: str
    type: str
    tags: List[str]
    source: str
    parent_id: Optional[int] = None
    conversation_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    extensions: JsonObject = Field(default_factory=dict)
    connections: JsonObject = Field(default_factory=dict)
    metadata: JsonObject = _metadata_field()


class IdeaCreate(CamelModel):
    """Schema for creating an idea."""
    user_id: str = DEFAULT_USER_ID
    title: str = Field(..., min_length=1, max_length=300)
    description: str
    status: Optional[IdeaStatus] = None
    tags: List[str] = Field(default_factory=list)
    version: Optional[int] = Field(None, ge=1)
    parent_idea_id: Optional[int] = None
    root_idea_id: Optional[int] = None
    evolution_path: Optional[List[JsonValue]] = None
    metrics: Optional[JsonObject] = None
    feedback: Optional[List[JsonValue]] = None
    metadata: Optional[JsonObject] = None


class IdeaUpdate(CamelModel):
    """Schema for updating an idea."""
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    status: Optional[IdeaStatus] = None
    tags: Optional[List[str]] = None
    evolution_path: Optional[List[JsonValue]] = None
    metrics: Optional[JsonObject] = None
    feedback: Optional[List[JsonValue]] = None
    metadata: Optional[JsonObject] = None


class IdeaResponse(CamelModel):
    """Idea response schema."""
    id: int
    user_id: str
    title: str
    description: str
    status: str
    tags: List[str]
    version: int
    parent_idea_id: Optional[int] = None
    root_idea_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    evolution_path: List[JsonValue] = Field(default_factory=list)
    metrics: JsonObject = Field(default_factory=dict)
    feedback: List[JsonValue] = Field(default_factory=list)
    metadata: JsonObject = _metadata_field()


class RelationCreate(CamelModel):
    """Schema for linking a thought and an idea."""
    relation_type: str = Field("associated", min_length=1, max_length=50)
    strength: int = Field(1, ge=1)
    metadata: Optional[JsonObject] = None


class RelationResponse(CamelModel):
    """Thought-idea relation response schema."""
    id: int
    thought_id: int
    idea_id: int
    relation_type: str
    strength: int
    metadata: JsonObject = _metadata_field()
    created_at: datetime
