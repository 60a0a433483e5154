"""
Services package.
"""

from .cache_service import ResponseCache, TTLCache
from .chat_service import ChatService
from .conversation_service import ConversationService
from .llm_service import LLMService
from .thought_service import ThoughtService

__all__ = ["ResponseCache", "TTLCache", "ChatService", "ConversationService", "LLMService", "ThoughtService"]
