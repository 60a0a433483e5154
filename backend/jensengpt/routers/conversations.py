"""
Conversation management routes.
"""

from fastapi import APIRouter, Depends, Response, status
from typing import List

from ..dependencies import get_cache, get_conversation_service, get_thought_service
from ..exceptions import NotFoundError
from ..schemas.conversation import (
    BookmarkResponse,
    BranchResponse,
    ConversationCreate,
    ConversationResponse,
    ConversationTitleUpdate,
    LearningModeUpdate,
)
from ..schemas.message import MessageResponse
from ..schemas.thought import ThoughtResponse
from ..services.cache_service import CONVERSATION_LIST_KEY, ResponseCache, conversation_key
from ..services.conversation_service import ConversationService
from ..services.thought_service import ThoughtService


router = APIRouter(prefix="/api/conversations", tags=["Conversations"])


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """List all conversations, most recently updated first."""
    cached = cache.listings.get(CONVERSATION_LIST_KEY)
    if cached is not None:
        return cached

    stamp = cache.stamp(CONVERSATION_LIST_KEY)
    conversations = [ConversationResponse.model_validate(c) for c in await service.get_conversations()]
    cache.fill(cache.listings, CONVERSATION_LIST_KEY, conversations, stamp)
    return conversations


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    conversation_data: ConversationCreate,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Create a new conversation with its main branch."""
    conversation = await service.create_conversation(conversation_data)
    cache.invalidate_conversation(conversation.id)
    return conversation


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    key = conversation_key(conversation_id, "detail")
    cached = cache.listings.get(key)
    if cached is not None:
        return cached

    stamp = cache.stamp(conversation_key(conversation_id))
    conversation = await service.get_conversation(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation", conversation_id)

    detail = ConversationResponse.model_validate(conversation)
    cache.fill(cache.listings, key, detail, stamp)
    return detail


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Delete a conversation with its branches, bookmarks and messages."""
    if not await service.delete_conversation(conversation_id):
        raise NotFoundError("Conversation", conversation_id)

    cache.invalidate_conversation(conversation_id)
    # Single-message entries are keyed by message id only
    cache.invalidate_messages()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{conversation_id}/title", response_model=ConversationResponse)
async def update_conversation_title(
    conversation_id: str,
    update_data: ConversationTitleUpdate,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    conversation = await service.update_conversation_title(conversation_id, update_data.title)
    cache.invalidate_conversation(conversation_id)
    return conversation


@router.patch("/{conversation_id}/learning-mode", response_model=ConversationResponse)
async def toggle_learning_mode(
    conversation_id: str,
    update_data: LearningModeUpdate,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Turn learning mode on or off for a conversation."""
    conversation = await service.toggle_learning_mode(conversation_id, update_data.enabled)
    cache.invalidate_conversation(conversation_id)
    return conversation


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """All messages of a conversation, oldest first."""
    key = conversation_key(conversation_id, "messages")
    cached = cache.messages.get(key)
    if cached is not None:
        return cached

    stamp = cache.stamp(conversation_key(conversation_id))
    messages = [MessageResponse.model_validate(m) for m in await service.get_messages_by_conversation(conversation_id)]
    cache.fill(cache.messages, key, messages, stamp)
    return messages


@router.get("/{conversation_id}/branches", response_model=List[BranchResponse])
async def get_branches(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    key = conversation_key(conversation_id, "branches")
    cached = cache.listings.get(key)
    if cached is not None:
        return cached

    stamp = cache.stamp(conversation_key(conversation_id))
    branches = [BranchResponse.model_validate(b) for b in await service.get_branches(conversation_id)]
    cache.fill(cache.listings, key, branches, stamp)
    return branches


@router.get("/{conversation_id}/branches/active", response_model=BranchResponse)
async def get_active_branch(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    key = conversation_key(conversation_id, "branches", "active")
    cached = cache.listings.get(key)
    if cached is not None:
        return cached

    stamp = cache.stamp(conversation_key(conversation_id))
    branch = await service.get_active_branch(conversation_id)
    if branch is None:
        raise NotFoundError("Active branch for conversation", conversation_id)

    active = BranchResponse.model_validate(branch)
    cache.fill(cache.listings, key, active, stamp)
    return active


@router.get("/{conversation_id}/branches/{branch_id}/messages", response_model=List[MessageResponse])
async def get_branch_messages(
    conversation_id: str,
    branch_id: str,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Messages tagged with one branch, oldest first."""
    key = conversation_key(conversation_id, "branch", branch_id, "messages")
    cached = cache.messages.get(key)
    if cached is not None:
        return cached

    stamp = cache.stamp(conversation_key(conversation_id))
    messages = [
        MessageResponse.model_validate(m)
        for m in await service.get_messages_by_branch(conversation_id, branch_id)
    ]
    cache.fill(cache.messages, key, messages, stamp)
    return messages


@router.get("/{conversation_id}/bookmarks", response_model=List[BookmarkResponse])
async def get_bookmarks(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service)
):
    return await service.get_bookmarks(conversation_id)


@router.get("/{conversation_id}/thoughts", response_model=List[ThoughtResponse])
async def get_conversation_thoughts(
    conversation_id: str,
    service: ThoughtService = Depends(get_thought_service)
):
    """Thoughts captured in a conversation, newest first."""
    return await service.get_thoughts_by_conversation(conversation_id)
