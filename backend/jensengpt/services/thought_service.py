"""
Thought, idea and thought-idea relation store.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError
from ..models.conversation import utcnow
from ..models.thought import Idea, Thought, ThoughtIdeaRelation
from ..schemas.thought import IdeaCreate, IdeaUpdate, RelationCreate, ThoughtCreate, ThoughtUpdate

logger = logging.getLogger(__name__)


class ThoughtService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ============= Thoughts =============

    async def get_thoughts_by_user(self, user_id: str) -> List[Thought]:
        result = await self.db.execute(
            select(Thought)
            .filter(Thought.user_id == user_id)
            .order_by(Thought.created_at.desc(), Thought.id.desc())
        )
        return list(result.scalars().all())

    async def get_thought(self, thought_id: int) -> Optional[Thought]:
        return await self.db.get(Thought, thought_id)

    async def get_thoughts_by_conversation(self, conversation_id: str) -> List[Thought]:
        result = await self.db.execute(
            select(Thought)
            .filter(Thought.conversation_id == conversation_id)
            .order_by(Thought.created_at.desc(), Thought.id.desc())
        )
        return list(result.scalars().all())

    async def get_related_thoughts(self, thought_id: int) -> List[Thought]:
        """Direct children plus thoughts whose connections point at this one."""
        if await self.get_thought(thought_id) is None:
            return []

        result = await self.db.execute(select(Thought).filter(Thought.id != thought_id))
        related = []
        for thought in result.scalars().all():
            if thought.parent_id == thought_id:
                related.append(thought)
                continue
            # connections maps a relation name to a list of thought ids
            for linked in (thought.connections or {}).values():
                if isinstance(linked, list) and thought_id in linked:
                    related.append(thought)
                    break

        related.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return related

    async def create_thought(self, data: ThoughtCreate) -> Thought:
        thought = Thought(
            user_id=data.user_id,
            content=data.content,
            type=data.type,
            tags=data.tags,
            source=data.source or "manual",
            parent_id=data.parent_id,
            conversation_id=data.conversation_id,
            extensions=data.extensions or {},
            connections=data.connections or {},
            metadata_=data.metadata or {}
        )
        self.db.add(thought)
        await self.db.commit()
        return thought

    async def update_thought(self, thought_id: int, data: ThoughtUpdate) -> Thought:
        thought = await self.get_thought(thought_id)
        if thought is None:
            raise NotFoundError("Thought", thought_id)

        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "metadata" in updates:
            updates["metadata_"] = updates.pop("metadata")
        for field, value in updates.items():
            setattr(thought, field, value)
        thought.updated_at = utcnow()

        await self.db.commit()
        return thought

    async def delete_thought(self, thought_id: int) -> bool:
        thought = await self.get_thought(thought_id)
        if thought is None:
            return False

        await self.db.execute(
            delete(ThoughtIdeaRelation)
            .where(ThoughtIdeaRelation.thought_id == thought_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(thought)
        await self.db.commit()
        return True

    # ============= Ideas =============

    async def get_ideas_by_user(self, user_id: str) -> List[Idea]:
        result = await self.db.execute(
            select(Idea)
            .filter(Idea.user_id == user_id)
            .order_by(Idea.created_at.desc(), Idea.id.desc())
        )
        return list(result.scalars().all())

    async def get_idea(self, idea_id: int) -> Optional[Idea]:
        return await self.db.get(Idea, idea_id)

    async def get_idea_versions(self, root_idea_id: int) -> List[Idea]:
        """The root idea and every idea derived from it, by version."""
        result = await self.db.execute(
            select(Idea)
            .filter(or_(Idea.id == root_idea_id, Idea.root_idea_id == root_idea_id))
            .order_by(Idea.version, Idea.id)
        )
        return list(result.scalars().all())

    async def create_idea(self, data: IdeaCreate) -> Idea:
        """Create an idea.

        An idea without a parent is its own root. A new version of an
        existing idea inherits the parent's root and, unless given, the next
        version number.
        """
        parent = None
        if data.parent_idea_id is not None:
            parent = await self.get_idea(data.parent_idea_id)
            if parent is None:
                raise NotFoundError("Idea", data.parent_idea_id)

        root_idea_id = data.root_idea_id
        version = data.version
        if parent is not None:
            if root_idea_id is None:
                root_idea_id = parent.root_idea_id or parent.id
            if version is None:
                version = parent.version + 1

        idea = Idea(
            user_id=data.user_id,
            title=data.title,
            description=data.description,
            status=data.status or "draft",
            tags=data.tags,
            version=version or 1,
            parent_idea_id=data.parent_idea_id,
            root_idea_id=root_idea_id,
            evolution_path=data.evolution_path or [],
            metrics=data.metrics or {},
            feedback=data.feedback or [],
            metadata_=data.metadata or {}
        )
        self.db.add(idea)
        await self.db.flush()

        if idea.root_idea_id is None:
            idea.root_idea_id = idea.id

        await self.db.commit()
        return idea

    async def update_idea(self, idea_id: int, data: IdeaUpdate) -> Idea:
        idea = await self.get_idea(idea_id)
        if idea is None:
            raise NotFoundError("Idea", idea_id)

        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "metadata" in updates:
            updates["metadata_"] = updates.pop("metadata")
        for field, value in updates.items():
            setattr(idea, field, value)
        idea.updated_at = utcnow()

        await self.db.commit()
        return idea

    async def delete_idea(self, idea_id: int) -> bool:
        idea = await self.get_idea(idea_id)
        if idea is None:
            return False

        await self.db.execute(
            delete(ThoughtIdeaRelation)
            .where(ThoughtIdeaRelation.idea_id == idea_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(idea)
        await self.db.commit()
        return True

    # ============= Relations =============

    async def get_thoughts_by_idea(self, idea_id: int) -> List[Thought]:
        result = await self.db.execute(
            select(Thought)
            .join(ThoughtIdeaRelation, ThoughtIdeaRelation.thought_id == Thought.id)
            .filter(ThoughtIdeaRelation.idea_id == idea_id)
            .order_by(Thought.created_at.desc(), Thought.id.desc())
        )
        return list(result.scalars().all())

    async def get_ideas_by_thought(self, thought_id: int) -> List[Idea]:
        result = await self.db.execute(
            select(Idea)
            .join(ThoughtIdeaRelation, ThoughtIdeaRelation.idea_id == Idea.id)
            .filter(ThoughtIdeaRelation.thought_id == thought_id)
            .order_by(Idea.created_at.desc(), Idea.id.desc())
        )
        return list(result.scalars().all())

    async def create_thought_idea_relation(
        self,
        thought_id: int,
        idea_id: int,
        data: RelationCreate
    ) -> ThoughtIdeaRelation:
        """Link a thought and an idea; relinking a pair replaces the link."""
        if await self.get_thought(thought_id) is None:
            raise NotFoundError("Thought", thought_id)
        if await self.get_idea(idea_id) is None:
            raise NotFoundError("Idea", idea_id)

        relation = await self._get_relation(thought_id, idea_id)
        if relation is None:
            relation = ThoughtIdeaRelation(thought_id=thought_id, idea_id=idea_id)
            self.db.add(relation)

        relation.relation_type = data.relation_type
        relation.strength = data.strength
        relation.metadata_ = data.metadata or {}

        await self.db.commit()
        logger.debug("Linked thought %s to idea %s (%s)", thought_id, idea_id, data.relation_type)
        return relation

    async def delete_thought_idea_relation(self, thought_id: int, idea_id: int) -> bool:
        relation = await self._get_relation(thought_id, idea_id)
        if relation is None:
            return False

        await self.db.delete(relation)
        await self.db.commit()
        return True

    async def _get_relation(self, thought_id: int, idea_id: int) -> Optional[ThoughtIdeaRelation]:
        result = await self.db.execute(
            select(ThoughtIdeaRelation).filter(
                ThoughtIdeaRelation.thought_id == thought_id,
                ThoughtIdeaRelation.idea_id == idea_id
            )
        )
        return result.scalars().first()
