"""
Chat relay: resolves the conversation and branch for a turn, persists the
exchange and forwards the provider stream to the client as NDJSON.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

import anyio
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..exceptions import LLMServiceError, NotFoundError
from ..models.conversation import Branch, Conversation
from ..models.message import Message
from ..schemas.conversation import BranchCreate, ConversationCreate
from ..schemas.message import ChatRequest, MessageCreate, StreamChunk, StreamComplete, StreamError
from ..utils.locks import KeyedLocks
from ..utils.message_tree import (
    branch_name_for,
    build_message_chain,
    conversation_title_for,
    select_context,
)
from .cache_service import ResponseCache
from .conversation_service import ConversationService
from .llm_service import CompletionStream

logger = logging.getLogger(__name__)

BASE_SYSTEM_PROMPT = (
    "You are JensenGPT, a helpful assistant powered by NVIDIA's Llama 3.1 Nemotron Ultra. "
    "Your responses should be accurate, helpful, and occasionally reference NVIDIA "
    "technology or Jensen Huang in a tasteful way."
)

REASONING_SYSTEM_PROMPT = BASE_SYSTEM_PROMPT + (
    "\n\nIMPORTANT: When generating responses, you must extensively show your thought "
    "process, reasoning through multiple angles of the question before reaching a "
    "conclusion. Always explain your thinking step by step."
)

CONCISE_SYSTEM_PROMPT = BASE_SYSTEM_PROMPT + (
    "\n\nKeep your responses concise and direct without showing your detailed "
    "reasoning process."
)


def default_system_prompt(reasoning_mode: bool) -> str:
    return REASONING_SYSTEM_PROMPT if reasoning_mode else CONCISE_SYSTEM_PROMPT


@dataclass
class PreparedTurn:
    """Everything the relay needs once the user message is stored."""
    conversation_id: str
    branch_id: Optional[str]
    user_message_id: int
    model_id: str
    messages: List[Dict[str, str]]


class ChatService:
    """Runs one chat turn against the store and the provider.

    ``db`` is the request session used while preparing the turn. The relay
    outlives the request handler, so it opens its own sessions from
    ``session_factory`` to store the reply.
    """

    def __init__(
        self,
        db: AsyncSession,
        session_factory: async_sessionmaker,
        cache: ResponseCache,
        locks: KeyedLocks
    ):
        self.db = db
        self.session_factory = session_factory
        self.cache = cache
        self.locks = locks
        self.store = ConversationService(db, locks=locks)

    async def prepare_turn(self, request: ChatRequest) -> PreparedTurn:
        """Resolve conversation and branch, store the user message, build the context."""
        conversation, branch, parent = await self._resolve(request)

        # Read before the user message is stored so it never ends up in its own context
        all_messages = await self.store.get_messages_by_conversation(conversation.id)
        branch_messages = [m for m in all_messages if branch is not None and m.branch_id == branch.id]

        if parent is not None:
            history = build_message_chain(all_messages, parent.id)
            parent_id = parent.id
        elif branch_messages:
            history = branch_messages
            parent_id = branch_messages[-1].id
        else:
            history = all_messages
            parent_id = branch.root_message_id if branch is not None else None

        user_message = await self.store.create_message(MessageCreate(
            role="user",
            content=request.message,
            conversation_id=conversation.id,
            branch_id=branch.id if branch is not None else None,
            parent_id=parent_id
        ))
        self.cache.invalidate_conversation(conversation.id)

        messages = [{"role": "system", "content": request.system_prompt or default_system_prompt(request.reasoning_mode)}]
        for message in select_context(history, settings.CONTEXT_WINDOW_MESSAGES):
            messages.append({"role": message.role, "content": message.content})
        messages.append({"role": "user", "content": request.message})

        logger.info(
            "Prepared turn in conversation %s (branch %s, %d context messages)",
            conversation.id, user_message.branch_id, len(messages) - 2
        )
        return PreparedTurn(
            conversation_id=conversation.id,
            branch_id=user_message.branch_id,
            user_message_id=user_message.id,
            model_id=request.model_id or settings.DEFAULT_MODEL_ID,
            messages=messages
        )

    async def _resolve(self, request: ChatRequest):
        if request.conversation_id is None:
            # A brand-new conversation has no messages to branch from
            if request.parent_message_id is not None:
                raise NotFoundError("Message", request.parent_message_id)

            conversation = await self.store.create_conversation(
                ConversationCreate(title=conversation_title_for(request.message))
            )
            branch = await self.store.get_or_create_active_branch(conversation.id)
            return conversation, branch, None

        conversation: Optional[Conversation] = await self.store.get_conversation(request.conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", request.conversation_id)

        parent: Optional[Message] = None
        if request.parent_message_id is not None:
            parent = await self.store.get_message(request.parent_message_id)
            if parent is None or parent.conversation_id != conversation.id:
                raise NotFoundError("Message", request.parent_message_id)

        branch: Optional[Branch]
        if request.branch_id is not None:
            branch = await self.store.get_branch(request.branch_id)
            if branch is None or branch.conversation_id != conversation.id:
                raise NotFoundError("Branch", request.branch_id)
        elif parent is not None:
            branch = await self.store.create_branch(BranchCreate(
                name=branch_name_for(parent.content),
                conversation_id=conversation.id,
                is_active=1,
                root_message_id=parent.id
            ))
        else:
            branch = await self.store.get_or_create_active_branch(conversation.id)

        return conversation, branch, parent

    async def relay(self, turn: PreparedTurn, stream: CompletionStream) -> AsyncIterator[str]:
        """Forward provider deltas as NDJSON lines and store the reply at the end.

        Exactly one final record (``isComplete: true``) ends a stream that was
        not abandoned by the client. If the client goes away, the provider
        stream is closed and any text received so far is stored as a
        truncated reply.
        """
        received: List[str] = []
        try:
            async for delta in stream:
                received.append(delta)
                yield _line(StreamChunk(content=delta, conversation_id=turn.conversation_id))
        except LLMServiceError as e:
            logger.error("Provider stream failed in conversation %s: %s", turn.conversation_id, e)
            await stream.close()
            yield _line(StreamError(
                message="".join(received),
                detail=str(e),
                conversation_id=turn.conversation_id,
                branch_id=turn.branch_id
            ))
            return
        except (asyncio.CancelledError, GeneratorExit):
            with anyio.CancelScope(shield=True):
                await stream.close()
                if received:
                    try:
                        await self._store_reply(turn, "".join(received), truncated=True)
                    except NotFoundError as e:
                        logger.warning(
                            "Client left conversation %s mid-stream; could not store partial reply: %s",
                            turn.conversation_id, e
                        )
                    else:
                        logger.info(
                            "Client left conversation %s mid-stream; stored %d characters",
                            turn.conversation_id, sum(len(part) for part in received)
                        )
            raise

        await stream.close()
        content = "".join(received)
        try:
            reply = await self._store_reply(turn, content)
        except NotFoundError as e:
            # The conversation was deleted while the reply was streaming
            logger.warning("Could not store reply for conversation %s: %s", turn.conversation_id, e)
            yield _line(StreamError(
                message=content,
                detail=str(e),
                conversation_id=turn.conversation_id,
                branch_id=turn.branch_id
            ))
            return

        yield _line(StreamComplete(
            message=content,
            conversation_id=turn.conversation_id,
            message_id=reply.id,
            branch_id=turn.branch_id
        ))

    async def _store_reply(self, turn: PreparedTurn, content: str, truncated: bool = False) -> Message:
        async with self.session_factory() as session:
            store = ConversationService(session, locks=self.locks)
            reply = await store.create_message(MessageCreate(
                role="assistant",
                content=content,
                conversation_id=turn.conversation_id,
                branch_id=turn.branch_id,
                parent_id=turn.user_message_id,
                model=turn.model_id,
                is_truncated=truncated
            ))
        self.cache.invalidate_conversation(turn.conversation_id)
        return reply


def _line(record: BaseModel) -> str:
    return record.model_dump_json(by_alias=True) + "\n"
