"""
Thought routes, including links from thoughts to ideas.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from typing import List, Optional

from ..dependencies import get_thought_service
from ..exceptions import NotFoundError
from ..schemas.thought import (
    DEFAULT_USER_ID,
    IdeaResponse,
    RelationCreate,
    RelationResponse,
    ThoughtCreate,
    ThoughtResponse,
    ThoughtUpdate,
)
from ..services.thought_service import ThoughtService


router = APIRouter(prefix="/api/thoughts", tags=["Thoughts"])


@router.get("", response_model=List[ThoughtResponse])
async def list_thoughts(
    user_id: str = Query(DEFAULT_USER_ID, alias="userId"),
    service: ThoughtService = Depends(get_thought_service)
):
    """List a user's thoughts, newest first."""
    return await service.get_thoughts_by_user(user_id)


@router.post("", response_model=ThoughtResponse, status_code=status.HTTP_201_CREATED)
async def create_thought(
    thought_data: ThoughtCreate,
    service: ThoughtService = Depends(get_thought_service)
):
    return await service.create_thought(thought_data)


@router.get("/{thought_id}", response_model=ThoughtResponse)
async def get_thought(
    thought_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    thought = await service.get_thought(thought_id)
    if thought is None:
        raise NotFoundError("Thought", thought_id)
    return thought


@router.patch("/{thought_id}", response_model=ThoughtResponse)
async def update_thought(
    thought_id: int,
    update_data: ThoughtUpdate,
    service: ThoughtService = Depends(get_thought_service)
):
    return await service.update_thought(thought_id, update_data)


@router.delete("/{thought_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thought(
    thought_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    if not await service.delete_thought(thought_id):
        raise NotFoundError("Thought", thought_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{thought_id}/related", response_model=List[ThoughtResponse])
async def get_related_thoughts(
    thought_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    """Children of a thought and thoughts connected to it."""
    return await service.get_related_thoughts(thought_id)


@router.get("/{thought_id}/ideas", response_model=List[IdeaResponse])
async def get_thought_ideas(
    thought_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    return await service.get_ideas_by_thought(thought_id)


@router.post(
    "/{thought_id}/ideas/{idea_id}",
    response_model=RelationResponse,
    status_code=status.HTTP_201_CREATED
)
async def link_thought_to_idea(
    thought_id: int,
    idea_id: int,
    relation_data: Optional[RelationCreate] = None,
    service: ThoughtService = Depends(get_thought_service)
):
    """Link a thought to an idea; linking again replaces the relation."""
    return await service.create_thought_idea_relation(
        thought_id,
        idea_id,
        relation_data or RelationCreate()
    )


@router.delete("/{thought_id}/ideas/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_thought_from_idea(
    thought_id: int,
    idea_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    if not await service.delete_thought_idea_relation(thought_id, idea_id):
        raise NotFoundError("Relation", f"{thought_id}-{idea_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
