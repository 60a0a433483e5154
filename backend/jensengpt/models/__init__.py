"""
Database models package.
"""

from .conversation import Conversation, Branch, Bookmark
from .message import Message, ReasoningExplanation
from .thought import Thought, Idea, ThoughtIdeaRelation

__all__ = [
    "Conversation",
    "Branch",
    "Bookmark",
    "Message",
    "ReasoningExplanation",
    "Thought",
    "Idea",
    "ThoughtIdeaRelation",
]
