"""
Bookmark routes.
"""

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_conversation_service
from ..exceptions import NotFoundError
from ..schemas.conversation import BookmarkCreate, BookmarkNameUpdate, BookmarkResponse
from ..services.conversation_service import ConversationService


router = APIRouter(prefix="/api/bookmarks", tags=["Bookmarks"])


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
async def create_bookmark(
    bookmark_data: BookmarkCreate,
    service: ConversationService = Depends(get_conversation_service)
):
    return await service.create_bookmark(bookmark_data)


@router.patch("/{bookmark_id}/name", response_model=BookmarkResponse)
async def update_bookmark_name(
    bookmark_id: str,
    update_data: BookmarkNameUpdate,
    service: ConversationService = Depends(get_conversation_service)
):
    return await service.update_bookmark_name(bookmark_id, update_data.name)


@router.delete("/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bookmark(
    bookmark_id: str,
    service: ConversationService = Depends(get_conversation_service)
):
    if not await service.delete_bookmark(bookmark_id):
        raise NotFoundError("Bookmark", bookmark_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
