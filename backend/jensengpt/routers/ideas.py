"""
Idea routes.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from typing import List

from ..dependencies import get_thought_service
from ..exceptions import NotFoundError
from ..schemas.thought import (
    DEFAULT_USER_ID,
    IdeaCreate,
    IdeaResponse,
    IdeaUpdate,
    ThoughtResponse,
)
from ..services.thought_service import ThoughtService


router = APIRouter(prefix="/api/ideas", tags=["Ideas"])


@router.get("", response_model=List[IdeaResponse])
async def list_ideas(
    user_id: str = Query(DEFAULT_USER_ID, alias="userId"),
    service: ThoughtService = Depends(get_thought_service)
):
    """List a user's ideas, newest first."""
    return await service.get_ideas_by_user(user_id)


@router.post("", response_model=IdeaResponse, status_code=status.HTTP_201_CREATED)
async def create_idea(
    idea_data: IdeaCreate,
    service: ThoughtService = Depends(get_thought_service)
):
    """Create an idea, or a new version of one when a parent is given."""
    return await service.create_idea(idea_data)


@router.get("/{idea_id}", response_model=IdeaResponse)
async def get_idea(
    idea_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    idea = await service.get_idea(idea_id)
    if idea is None:
        raise NotFoundError("Idea", idea_id)
    return idea


@router.patch("/{idea_id}", response_model=IdeaResponse)
async def update_idea(
    idea_id: int,
    update_data: IdeaUpdate,
    service: ThoughtService = Depends(get_thought_service)
):
    return await service.update_idea(idea_id, update_data)


@router.delete("/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(
    idea_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    if not await service.delete_idea(idea_id):
        raise NotFoundError("Idea", idea_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{idea_id}/versions", response_model=List[IdeaResponse])
async def get_idea_versions(
    idea_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    """Every version of the idea's lineage, oldest version first."""
    idea = await service.get_idea(idea_id)
    if idea is None:
        raise NotFoundError("Idea", idea_id)
    return await service.get_idea_versions(idea.root_idea_id or idea.id)


@router.get("/{idea_id}/thoughts", response_model=List[ThoughtResponse])
async def get_idea_thoughts(
    idea_id: int,
    service: ThoughtService = Depends(get_thought_service)
):
    return await service.get_thoughts_by_idea(idea_id)
