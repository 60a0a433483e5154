"""
API Routers package.
"""

from .bookmarks import router as bookmarks_router
from .branches import router as branches_router
from .chat import router as chat_router
from .conversations import router as conversations_router
from .ideas import router as ideas_router
from .messages import router as messages_router
from .thoughts import router as thoughts_router

__all__ = [
    "bookmarks_router",
    "branches_router",
    "chat_router",
    "conversations_router",
    "ideas_router",
    "messages_router",
    "thoughts_router"
]
