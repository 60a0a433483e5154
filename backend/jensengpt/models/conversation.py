"""
Conversation, Branch and Bookmark database models.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index
from datetime import datetime, timezone
import uuid

from ..database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class Conversation(Base):
    """Conversation/chat session model."""

    __tablename__ = "conversations"

    id = Column(String(32), primary_key=True, default=new_id)

    # Conversation metadata
    title = Column(String(200), nullable=False, default="New Chat")
    learning_mode_enabled = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class Branch(Base):
    """One linear path through a conversation's message tree."""

    __tablename__ = "branches"

    __table_args__ = (
        Index('ix_branches_conversation_active', 'conversation_id', 'is_active'),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    conversation_id = Column(String(32), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    # 1 for the conversation's active branch, 0 otherwise
    is_active = Column(Integer, nullable=False, default=0)

    # Message this branch diverged from (null for the original branch)
    root_message_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Bookmark(Base):
    """Named pointer to a message for quick navigation."""

    __tablename__ = "bookmarks"

    id = Column(String(32), primary_key=True, default=new_id)
    conversation_id = Column(String(32), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    message_id = Column(Integer, nullable=False)
    branch_id = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
