"""
Message database models.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, JSON, Index

from ..database import Base
from .conversation import utcnow


class Message(Base):
    """Chat message; parent_id links it to its predecessor in the tree."""

    __tablename__ = "messages"

    __table_args__ = (
        Index('ix_messages_conversation_timestamp', 'conversation_id', 'timestamp'),
        Index('ix_messages_conversation_branch', 'conversation_id', 'branch_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(String(32), nullable=False)
    branch_id = Column(String(32), nullable=True)
    parent_id = Column(Integer, nullable=True)

    # Message content
    role = Column(String(20), nullable=False)  # "user", "assistant", "system"
    content = Column(Text, nullable=False, default="")
    model = Column(String(200), nullable=True)

    # Learning mode augmentation, attachable after creation
    reasoning_steps = Column(JSON, nullable=False, default=list)
    has_reasoning_steps = Column(Boolean, nullable=False, default=False)

    # Set when the client went away before the provider finished
    is_truncated = Column(Boolean, nullable=False, default=False)

    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ReasoningExplanation(Base):
    """Answer to a user question about one reasoning step of a message."""

    __tablename__ = "reasoning_explanations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    message_id = Column(Integer, nullable=False, index=True)
    step_index = Column(Integer, nullable=False)
    question = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
