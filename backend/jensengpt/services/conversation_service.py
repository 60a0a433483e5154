"""
Conversation store: conversations, branches, messages, bookmarks and
reasoning explanations.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..config import settings
from ..exceptions import NotFoundError, ReferenceIntegrityError
from ..models.conversation import Bookmark, Branch, Conversation, utcnow
from ..models.message import Message, ReasoningExplanation
from ..schemas.conversation import BookmarkCreate, BranchCreate, ConversationCreate
from ..schemas.message import MessageCreate, ReasoningStep
from ..utils.locks import KeyedLocks
from ..utils.message_tree import MAIN_BRANCH_NAME

logger = logging.getLogger(__name__)


class ConversationService:
    """Store for the conversation tree and everything hanging off it.

    With ``strict`` enabled (the default, from ``STRICT_REFERENCES``) writes
    that reference a missing conversation, branch or message raise
    :class:`ReferenceIntegrityError` instead of storing a dangling id.
    """

    def __init__(
        self,
        db: AsyncSession,
        locks: Optional[KeyedLocks] = None,
        strict: Optional[bool] = None
    ):
        self.db = db
        self.locks = locks if locks is not None else KeyedLocks()
        self.strict = settings.STRICT_REFERENCES if strict is None else strict

    # ============= Messages =============

    async def get_message(self, message_id: int) -> Optional[Message]:
        return await self.db.get(Message, message_id)

    async def get_messages_by_conversation(self, conversation_id: str) -> List[Message]:
        """All messages of a conversation, oldest first."""
        result = await self.db.execute(
            select(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.timestamp, Message.id)
        )
        return list(result.scalars().all())

    async def get_messages_by_branch(self, conversation_id: str, branch_id: str) -> List[Message]:
        """Messages tagged with one branch, oldest first.

        Ancestors the branch diverged from are not included; use
        ``build_message_chain`` for the effective history.
        """
        result = await self.db.execute(
            select(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.branch_id == branch_id
            )
            .order_by(Message.timestamp, Message.id)
        )
        return list(result.scalars().all())

    async def create_message(self, data: MessageCreate) -> Message:
        conversation = await self._check_reference(
            data.conversation_id,
            branch_id=data.branch_id,
            message_id=data.parent_id
        )

        message = Message(
            conversation_id=data.conversation_id,
            branch_id=data.branch_id,
            parent_id=data.parent_id,
            role=data.role,
            content=data.content,
            model=data.model,
            is_truncated=data.is_truncated,
            reasoning_steps=[],
            has_reasoning_steps=False
        )
        self.db.add(message)
        if conversation is not None:
            conversation.updated_at = utcnow()

        await self.db.commit()
        return message

    async def update_message_reasoning_steps(self, message_id: int, steps: List[ReasoningStep]) -> Message:
        message = await self.get_message(message_id)
        if message is None:
            raise NotFoundError("Message", message_id)

        message.reasoning_steps = [step.model_dump() for step in steps]
        message.has_reasoning_steps = len(steps) > 0
        await self.db.commit()
        return message

    async def get_reasoning_explanations(
        self,
        message_id: int,
        step_index: Optional[int] = None
    ) -> List[ReasoningExplanation]:
        stmt = select(ReasoningExplanation).filter(ReasoningExplanation.message_id == message_id)
        if step_index is not None:
            stmt = stmt.filter(ReasoningExplanation.step_index == step_index)
        result = await self.db.execute(stmt.order_by(ReasoningExplanation.id))
        return list(result.scalars().all())

    async def create_reasoning_explanation(
        self,
        message_id: int,
        step_index: int,
        question: str,
        content: str
    ) -> ReasoningExplanation:
        if await self.get_message(message_id) is None:
            raise NotFoundError("Message", message_id)

        explanation = ReasoningExplanation(
            message_id=message_id,
            step_index=step_index,
            question=question,
            content=content
        )
        self.db.add(explanation)
        await self.db.commit()
        return explanation

    # ============= Conversations =============

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return await self.db.get(Conversation, conversation_id)

    async def get_conversations(self) -> List[Conversation]:
        """All conversations, most recently updated first."""
        result = await self.db.execute(
            select(Conversation).order_by(Conversation.updated_at.desc())
        )
        return list(result.scalars().all())

    async def create_conversation(
        self,
        data: ConversationCreate,
        with_default_branch: bool = True
    ) -> Conversation:
        """Create a conversation, by default together with its active main branch."""
        conversation = Conversation(
            title=data.title,
            learning_mode_enabled=data.learning_mode_enabled
        )
        self.db.add(conversation)
        await self.db.flush()

        if with_default_branch:
            # No other request can know this id yet, so no lock is needed
            self.db.add(Branch(
                conversation_id=conversation.id,
                name=MAIN_BRANCH_NAME,
                is_active=1,
                root_message_id=None
            ))

        await self.db.commit()
        logger.info("Created conversation %s (%r)", conversation.id, conversation.title)
        return conversation

    async def update_conversation_title(self, conversation_id: str, title: str) -> Conversation:
        conversation = await self._require_conversation(conversation_id)
        conversation.title = title
        conversation.updated_at = utcnow()
        await self.db.commit()
        return conversation

    async def toggle_learning_mode(self, conversation_id: str, enabled: bool) -> Conversation:
        conversation = await self._require_conversation(conversation_id)
        conversation.learning_mode_enabled = enabled
        conversation.updated_at = utcnow()
        await self.db.commit()
        return conversation

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation with its branches, bookmarks and messages."""
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            return False

        message_ids = select(Message.id).filter(Message.conversation_id == conversation_id)
        await self.db.execute(
            delete(ReasoningExplanation)
            .where(ReasoningExplanation.message_id.in_(message_ids))
            .execution_options(synchronize_session=False)
        )
        for model in (Message, Branch, Bookmark):
            await self.db.execute(
                delete(model)
                .where(model.conversation_id == conversation_id)
                .execution_options(synchronize_session=False)
            )
        await self.db.delete(conversation)
        await self.db.commit()

        logger.info("Deleted conversation %s", conversation_id)
        return True

    # ============= Branches =============

    async def get_branch(self, branch_id: str) -> Optional[Branch]:
        return await self.db.get(Branch, branch_id)

    async def get_branches(self, conversation_id: str) -> List[Branch]:
        """Branches of a conversation, newest first."""
        result = await self.db.execute(
            select(Branch)
            .filter(Branch.conversation_id == conversation_id)
            .order_by(Branch.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_active_branch(self, conversation_id: str) -> Optional[Branch]:
        result = await self.db.execute(
            select(Branch)
            .filter(Branch.conversation_id == conversation_id, Branch.is_active == 1)
            .order_by(Branch.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def create_branch(self, data: BranchCreate) -> Branch:
        async with self._hold(data.conversation_id):
            await self._check_reference(data.conversation_id, message_id=data.root_message_id)

            is_active = data.is_active
            if is_active is None:
                # The first branch of a conversation is active by default
                count = await self.db.scalar(
                    select(func.count(Branch.id)).filter(Branch.conversation_id == data.conversation_id)
                )
                is_active = 1 if count == 0 else 0

            branch = Branch(
                conversation_id=data.conversation_id,
                name=data.name,
                is_active=0,
                root_message_id=data.root_message_id
            )
            self.db.add(branch)
            await self.db.flush()

            if is_active == 1:
                await self._activate(branch)

            await self.db.commit()

        logger.info(
            "Created branch %s in conversation %s (active=%s, root=%s)",
            branch.id, branch.conversation_id, branch.is_active, branch.root_message_id
        )
        return branch

    async def get_or_create_active_branch(self, conversation_id: str) -> Branch:
        """The active branch, creating an active main branch if there is none."""
        async with self._hold(conversation_id):
            branch = await self.get_active_branch(conversation_id)
            if branch is not None:
                return branch

            await self._check_reference(conversation_id)
            branch = Branch(
                conversation_id=conversation_id,
                name=MAIN_BRANCH_NAME,
                is_active=0,
                root_message_id=None
            )
            self.db.add(branch)
            await self.db.flush()
            await self._activate(branch)
            await self.db.commit()
            return branch

    async def update_branch_name(self, branch_id: str, name: str) -> Branch:
        branch = await self.get_branch(branch_id)
        if branch is None:
            raise NotFoundError("Branch", branch_id)

        branch.name = name
        await self.db.commit()
        return branch

    async def set_active_branch(self, branch_id: str) -> Branch:
        """Activate a branch and deactivate its siblings; idempotent."""
        branch = await self.get_branch(branch_id)
        if branch is None:
            raise NotFoundError("Branch", branch_id)

        async with self._hold(branch.conversation_id):
            if await self.db.get(Branch, branch_id, populate_existing=True) is None:
                raise NotFoundError("Branch", branch_id)
            await self._activate(branch)
            await self.db.commit()
        return branch

    async def delete_branch(self, branch_id: str) -> bool:
        """Delete a branch; its messages stay.

        If the deleted branch was active, the newest remaining branch of the
        conversation takes over.
        """
        branch = await self.get_branch(branch_id)
        if branch is None:
            return False

        conversation_id = branch.conversation_id
        async with self._hold(conversation_id):
            # Another request may have deleted or activated it meanwhile
            branch = await self.db.get(Branch, branch_id, populate_existing=True)
            if branch is None:
                return False

            was_active = branch.is_active == 1
            await self.db.delete(branch)
            await self.db.flush()

            if was_active:
                remaining = await self.get_branches(conversation_id)
                if remaining:
                    await self._activate(remaining[0])

            await self.db.commit()
        return True

    @asynccontextmanager
    async def _hold(self, conversation_id: str):
        """Take the conversation lock with no transaction or connection held.

        A session left waiting on the lock while holding a pooled connection
        can starve the lock holder of one.
        """
        if self.db.in_transaction():
            await self.db.commit()
        async with self.locks.hold(conversation_id):
            yield

    async def _activate(self, branch: Branch) -> None:
        """Flip the active flag for a whole conversation in one statement."""
        await self.db.execute(
            update(Branch)
            .where(Branch.conversation_id == branch.conversation_id)
            .values(is_active=case((Branch.id == branch.id, 1), else_=0))
            .execution_options(synchronize_session=False)
        )
        # Bring branches already loaded in this session in line with the row state
        for obj in list(self.db.identity_map.values()):
            if isinstance(obj, Branch) and obj.conversation_id == branch.conversation_id:
                set_committed_value(obj, "is_active", 1 if obj.id == branch.id else 0)

    # ============= Bookmarks =============

    async def get_bookmarks(self, conversation_id: str) -> List[Bookmark]:
        """Bookmarks of a conversation, newest first."""
        result = await self.db.execute(
            select(Bookmark)
            .filter(Bookmark.conversation_id == conversation_id)
            .order_by(Bookmark.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_bookmark(self, bookmark_id: str) -> Optional[Bookmark]:
        return await self.db.get(Bookmark, bookmark_id)

    async def create_bookmark(self, data: BookmarkCreate) -> Bookmark:
        await self._check_reference(
            data.conversation_id,
            branch_id=data.branch_id,
            message_id=data.message_id
        )

        bookmark = Bookmark(
            conversation_id=data.conversation_id,
            name=data.name,
            message_id=data.message_id,
            branch_id=data.branch_id
        )
        self.db.add(bookmark)
        await self.db.commit()
        return bookmark

    async def update_bookmark_name(self, bookmark_id: str, name: str) -> Bookmark:
        bookmark = await self.get_bookmark(bookmark_id)
        if bookmark is None:
            raise NotFoundError("Bookmark", bookmark_id)

        bookmark.name = name
        await self.db.commit()
        return bookmark

    async def delete_bookmark(self, bookmark_id: str) -> bool:
        bookmark = await self.get_bookmark(bookmark_id)
        if bookmark is None:
            return False

        await self.db.delete(bookmark)
        await self.db.commit()
        return True

    # ============= Helpers =============

    async def _require_conversation(self, conversation_id: str) -> Conversation:
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        return conversation

    async def _check_reference(
        self,
        conversation_id: str,
        branch_id: Optional[str] = None,
        message_id: Optional[int] = None
    ) -> Optional[Conversation]:
        """Verify the ids a write points at; returns the conversation if found."""
        conversation = await self.get_conversation(conversation_id)
        if not self.strict:
            return conversation

        if conversation is None:
            raise ReferenceIntegrityError("Conversation", conversation_id)

        if branch_id is not None:
            branch = await self.get_branch(branch_id)
            if branch is None or branch.conversation_id != conversation_id:
                raise ReferenceIntegrityError(
                    "Branch", branch_id, f"not part of conversation {conversation_id}"
                )

        if message_id is not None:
            message = await self.get_message(message_id)
            if message is None or message.conversation_id != conversation_id:
                raise ReferenceIntegrityError(
                    "Message", message_id, f"not part of conversation {conversation_id}"
                )

        return conversation
