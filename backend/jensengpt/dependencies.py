"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .database import get_db, get_session_factory
from .services.cache_service import ResponseCache
from .services.chat_service import ChatService
from .services.conversation_service import ConversationService
from .services.llm_service import LLMService
from .services.thought_service import ThoughtService
from .utils.locks import KeyedLocks


def get_cache(request: Request) -> ResponseCache:
    """The response cache of this app instance."""
    return request.app.state.cache


def get_locks(request: Request) -> KeyedLocks:
    return request.app.state.locks


def get_llm_service(request: Request) -> LLMService:
    """LLM client created once per app instance."""
    return request.app.state.llm_service


def get_conversation_service(
    db: AsyncSession = Depends(get_db),
    locks: KeyedLocks = Depends(get_locks)
) -> ConversationService:
    return ConversationService(db, locks=locks)


def get_thought_service(db: AsyncSession = Depends(get_db)) -> ThoughtService:
    return ThoughtService(db)


def get_chat_service(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    cache: ResponseCache = Depends(get_cache),
    locks: KeyedLocks = Depends(get_locks)
) -> ChatService:
    return ChatService(db, session_factory, cache, locks)
