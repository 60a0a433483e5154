"""
Conversation, branch and bookmark Pydantic schemas.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from .common import CamelModel


class ConversationCreate(CamelModel):
    """Schema for creating a conversation."""
    title: str = Field("New Chat", min_length=1, max_length=200)
    learning_mode_enabled: bool = False


class ConversationTitleUpdate(CamelModel):
    """Schema for renaming a conversation."""
    title: str = Field(..., min_length=1, max_length=200)


class LearningModeUpdate(CamelModel):
    """Schema for toggling learning mode."""
    enabled: bool


class ConversationResponse(CamelModel):
    """Conversation response schema."""
    id: str
    title: str
    learning_mode_enabled: bool
    created_at: datetime
    updated_at: datetime


class BranchCreate(CamelModel):
    """Schema for creating a branch.

    When ``is_active`` is omitted the branch is active only if it is the
    conversation's first branch.
    """
    name: str = Field(..., min_length=1, max_length=200)
    conversation_id: str = Field(..., min_length=1)
    is_active: Optional[int] = Field(None, ge=0, le=1)
    root_message_id: Optional[int] = None


class BranchNameUpdate(CamelModel):
    """Schema for renaming a branch."""
    name: str = Field(..., min_length=1, max_length=200)


class BranchResponse(CamelModel):
    """Branch response schema."""
    id: str
    name: str
    conversation_id: str
    created_at: datetime
    is_active: int
    root_message_id: Optional[int] = None


class BookmarkCreate(CamelModel):
    """Schema for creating a bookmark."""
    name: str = Field(..., min_length=1, max_length=200)
    conversation_id: str = Field(..., min_length=1)
    message_id: int
    branch_id: Optional[str] = None


class BookmarkNameUpdate(CamelModel):
    """Schema for renaming a bookmark."""
    name: str = Field(..., min_length=1, max_length=200)


class BookmarkResponse(CamelModel):
    """Bookmark response schema."""
    id: str
    name: str
    conversation_id: str
    message_id: int
    branch_id: Optional[str] = None
    created_at: datetime
