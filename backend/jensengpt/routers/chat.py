"""
Chat routes with streaming support.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..dependencies import get_chat_service, get_llm_service
from ..schemas.message import ChatRequest
from ..services.chat_service import ChatService
from ..services.llm_service import LLMService


router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.get("/models")
async def list_models(llm_service: LLMService = Depends(get_llm_service)):
    """List available LLM models from the configured API."""
    models = await llm_service.list_models()
    return {"models": models, "default": llm_service.model_id}


@router.post("")
async def send_message(
    chat_request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
    llm_service: LLMService = Depends(get_llm_service)
):
    """Send a chat message and stream the reply as newline-delimited JSON.

    The user message is stored before the provider is called; a provider
    that cannot be reached fails the request with 502 before any body is
    sent.
    """
    turn = await chat_service.prepare_turn(chat_request)
    stream = await llm_service.open_stream(turn.messages, turn.model_id)

    return StreamingResponse(
        chat_service.relay(turn, stream),
        media_type="application/json",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )
