"""
Thought, Idea and relation database models.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, UniqueConstraint

from ..database import Base
from .conversation import utcnow


class Thought(Base):
    """Free-form note captured alongside (or outside) a conversation."""

    __tablename__ = "thoughts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(String(30), nullable=False, default="note")
    tags = Column(JSON, nullable=False, default=list)
    source = Column(String(50), nullable=False, default="manual")
    parent_id = Column(Integer, nullable=True)
    conversation_id = Column(String(32), nullable=True, index=True)

    # Client-defined payloads
    extensions = Column(JSON, nullable=False, default=dict)
    connections = Column(JSON, nullable=False, default=dict)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Idea(Base):
    """Versioned idea; versions share a root_idea_id."""

    __tablename__ = "ideas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="draft")
    tags = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    parent_idea_id = Column(Integer, nullable=True)
    root_idea_id = Column(Integer, nullable=True, index=True)

    evolution_path = Column(JSON, nullable=False, default=list)
    metrics = Column(JSON, nullable=False, default=dict)
    feedback = Column(JSON, nullable=False, default=list)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ThoughtIdeaRelation(Base):
    """Link between a thought and an idea, one per pair."""

    __tablename__ = "thought_idea_relations"

    __table_args__ = (
        UniqueConstraint('thought_id', 'idea_id', name='uq_thought_idea'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    thought_id = Column(Integer, nullable=False, index=True)
    idea_id = Column(Integer, nullable=False, index=True)
    relation_type = Column(String(50), nullable=False, default="associated")
    strength = Column(Integer, nullable=False, default=1)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
