"""
Branch routes.
"""

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_cache, get_conversation_service
from ..exceptions import NotFoundError
from ..schemas.conversation import BranchCreate, BranchNameUpdate, BranchResponse
from ..services.cache_service import ResponseCache
from ..services.conversation_service import ConversationService


router = APIRouter(prefix="/api/branches", tags=["Branches"])


@router.post("", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    branch_data: BranchCreate,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Create a branch; the first branch of a conversation starts out active."""
    branch = await service.create_branch(branch_data)
    cache.invalidate_conversation(branch.conversation_id)
    return branch


@router.patch("/{branch_id}/name", response_model=BranchResponse)
async def update_branch_name(
    branch_id: str,
    update_data: BranchNameUpdate,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    branch = await service.update_branch_name(branch_id, update_data.name)
    cache.invalidate_conversation(branch.conversation_id)
    return branch


@router.post("/{branch_id}/active", response_model=BranchResponse)
async def set_active_branch(
    branch_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Make a branch the active one of its conversation."""
    branch = await service.set_active_branch(branch_id)
    cache.invalidate_conversation(branch.conversation_id)
    return branch


@router.delete("/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_branch(
    branch_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Delete a branch; its messages are kept."""
    branch = await service.get_branch(branch_id)
    if branch is None:
        raise NotFoundError("Branch", branch_id)

    conversation_id = branch.conversation_id
    if not await service.delete_branch(branch_id):
        raise NotFoundError("Branch", branch_id)
    cache.invalidate_conversation(conversation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
