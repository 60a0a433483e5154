"""Tests for thoughts, ideas and their relations."""

import pytest

from jensengpt.exceptions import NotFoundError
from jensengpt.schemas.thought import IdeaCreate, IdeaUpdate, RelationCreate, ThoughtCreate, ThoughtUpdate
from jensengpt.services.thought_service import ThoughtService


@pytest.fixture
def service(db):
    return ThoughtService(db)


def thought(content, **kwargs):
    return ThoughtCreate(content=content, type=kwargs.pop("type", "concept"), **kwargs)


@pytest.mark.asyncio
async def test_create_thought_fills_defaults(service):
    created = await service.create_thought(thought("GPUs are parallel"))

    assert created.source == "manual"
    assert created.user_id == "default-user"
    assert created.extensions == {}
    assert created.metadata_ == {}


@pytest.mark.asyncio
async def test_thoughts_by_user_newest_first(service):
    first = await service.create_thought(thought("one", user_id="u1"))
    second = await service.create_thought(thought("two", user_id="u1"))
    await service.create_thought(thought("other", user_id="u2"))

    assert [t.id for t in await service.get_thoughts_by_user("u1")] == [second.id, first.id]


@pytest.mark.asyncio
async def test_related_thoughts_include_children_and_connections(service):
    root = await service.create_thought(thought("root"))
    child = await service.create_thought(thought("child", parent_id=root.id))
    linked = await service.create_thought(thought("linked", connections={"supports": [root.id]}))
    await service.create_thought(thought("unrelated", connections={"supports": [999]}))

    related = await service.get_related_thoughts(root.id)

    assert [t.id for t in related] == [linked.id, child.id]
    assert await service.get_related_thoughts(999) == []


@pytest.mark.asyncio
async def test_update_thought(service):
    created = await service.create_thought(thought("draft", tags=["a"]))

    updated = await service.update_thought(
        created.id,
        ThoughtUpdate(content="final", metadata={"score": 3})
    )

    assert updated.content == "final"
    assert updated.tags == ["a"]
    assert updated.metadata_ == {"score": 3}

    with pytest.raises(NotFoundError):
        await service.update_thought(999, ThoughtUpdate(content="x"))


@pytest.mark.asyncio
async def test_new_idea_is_its_own_root(service):
    idea = await service.create_idea(IdeaCreate(title="Faster inference", description="Use TensorRT"))

    assert idea.root_idea_id == idea.id
    assert idea.version == 1
    assert idea.status == "draft"


@pytest.mark.asyncio
async def test_idea_versions_share_root(service):
    root = await service.create_idea(IdeaCreate(title="v1", description="first"))
    v2 = await service.create_idea(IdeaCreate(title="v2", description="second", parent_idea_id=root.id))
    v3 = await service.create_idea(IdeaCreate(title="v3", description="third", parent_idea_id=v2.id))

    assert v2.root_idea_id == root.id
    assert v3.root_idea_id == root.id
    assert v3.version == 3
    assert [i.id for i in await service.get_idea_versions(root.id)] == [root.id, v2.id, v3.id]

    with pytest.raises(NotFoundError):
        await service.create_idea(IdeaCreate(title="x", description="y", parent_idea_id=999))


@pytest.mark.asyncio
async def test_update_idea(service):
    idea = await service.create_idea(IdeaCreate(title="t", description="d"))

    updated = await service.update_idea(
        idea.id,
        IdeaUpdate(status="refined", evolution_path=[{"step": "refine"}])
    )

    assert updated.status == "refined"
    assert updated.evolution_path == [{"step": "refine"}]
    assert updated.title == "t"


@pytest.mark.asyncio
async def test_relation_is_upserted(service):
    t = await service.create_thought(thought("note"))
    idea = await service.create_idea(IdeaCreate(title="t", description="d"))

    first = await service.create_thought_idea_relation(t.id, idea.id, RelationCreate())
    second = await service.create_thought_idea_relation(
        t.id, idea.id, RelationCreate(relation_type="inspires", strength=3)
    )

    assert first.id == second.id
    assert second.relation_type == "inspires"
    assert [i.id for i in await service.get_ideas_by_thought(t.id)] == [idea.id]
    assert [x.id for x in await service.get_thoughts_by_idea(idea.id)] == [t.id]

    with pytest.raises(NotFoundError):
        await service.create_thought_idea_relation(999, idea.id, RelationCreate())


@pytest.mark.asyncio
async def test_deleting_thought_or_idea_removes_relations(service):
    t = await service.create_thought(thought("note"))
    idea = await service.create_idea(IdeaCreate(title="t", description="d"))
    other = await service.create_idea(IdeaCreate(title="o", description="d"))
    await service.create_thought_idea_relation(t.id, idea.id, RelationCreate())
    await service.create_thought_idea_relation(t.id, other.id, RelationCreate())

    assert await service.delete_idea(other.id) is True
    assert [i.id for i in await service.get_ideas_by_thought(t.id)] == [idea.id]

    assert await service.delete_thought(t.id) is True
    assert await service.get_thoughts_by_idea(idea.id) == []
    assert await service.delete_thought_idea_relation(t.id, idea.id) is False
    assert await service.delete_thought(t.id) is False
