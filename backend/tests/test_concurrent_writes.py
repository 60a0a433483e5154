"""Tests for writes that overlap other requests on a file database."""

import asyncio

import pytest
from sqlalchemy import func, select

from jensengpt.models import Branch, Conversation


@pytest.mark.asyncio
async def test_flushed_write_survives_another_session_closing(file_session_factory):
    async with file_session_factory() as writer:
        writer.add(Conversation(title="Pending"))
        await writer.flush()

        async with file_session_factory() as reader:
            await reader.execute(select(Conversation))

        await writer.commit()

    async with file_session_factory() as session:
        titles = (await session.execute(select(Conversation.title))).scalars().all()
    assert titles == ["Pending"]


@pytest.mark.asyncio
async def test_concurrent_branch_creation_keeps_every_row(file_client, file_session_factory):
    created = await file_client.post("/api/conversations", json={"title": "Busy"})
    conversation_id = created.json()["id"]

    posts = [
        file_client.post("/api/branches", json={
            "name": f"Branch {i}",
            "conversationId": conversation_id,
            "isActive": 1
        })
        for i in range(30)
    ]
    polls = [file_client.get(f"/api/conversations/{conversation_id}/messages") for _ in range(30)]
    responses = await asyncio.gather(*posts, *polls)

    assert [r.status_code for r in responses[:30]] == [201] * 30
    assert all(r.status_code == 200 for r in responses[30:])

    async with file_session_factory() as session:
        total = await session.scalar(
            select(func.count(Branch.id)).filter(Branch.conversation_id == conversation_id)
        )
        active = (await session.execute(
            select(Branch.id).filter(Branch.conversation_id == conversation_id, Branch.is_active == 1)
        )).scalars().all()

    # Main branch plus the thirty new ones
    assert total == 31
    assert len(active) == 1

    listed = (await file_client.get(f"/api/conversations/{conversation_id}/branches")).json()
    assert len(listed) == 31
    assert [b["id"] for b in listed if b["isActive"] == 1] == active


@pytest.mark.asyncio
async def test_concurrent_activation_and_deletion(file_client, file_session_factory):
    conversation_id = (await file_client.post("/api/conversations", json={})).json()["id"]
    branch_ids = []
    for i in range(6):
        response = await file_client.post("/api/branches", json={"name": f"b{i}", "conversationId": conversation_id})
        branch_ids.append(response.json()["id"])

    activations = [file_client.post(f"/api/branches/{b}/active") for b in branch_ids[:3]]
    deletions = [file_client.delete(f"/api/branches/{b}") for b in branch_ids[:3]]
    await asyncio.gather(*activations, *deletions)

    async with file_session_factory() as session:
        remaining = (await session.execute(
            select(Branch).filter(Branch.conversation_id == conversation_id)
        )).scalars().all()

    assert {b.id for b in remaining} >= set(branch_ids[3:])
    assert not {b.id for b in remaining} & set(branch_ids[:3])
    assert sum(b.is_active for b in remaining) <= 1
