"""
Message routes: lookup, reasoning steps and step explanations.
"""

from fastapi import APIRouter, Depends, status
from typing import List

from ..dependencies import get_cache, get_conversation_service, get_llm_service
from ..exceptions import NotFoundError
from ..schemas.message import (
    ExplanationRequest,
    MessageResponse,
    ReasoningExplanationResponse,
    ReasoningStepsUpdate,
)
from ..services.cache_service import MESSAGE_SCOPE, ResponseCache, message_key
from ..services.conversation_service import ConversationService
from ..services.llm_service import LLMService


router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(
    message_id: int,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    key = message_key(message_id)
    cached = cache.messages.get(key)
    if cached is not None:
        return cached

    stamp = cache.stamp(MESSAGE_SCOPE, key)
    message = await service.get_message(message_id)
    if message is None:
        raise NotFoundError("Message", message_id)

    response = MessageResponse.model_validate(message)
    cache.fill(cache.messages, key, response, stamp)
    return response


@router.post("/{message_id}/reasoning-steps", response_model=MessageResponse)
async def update_reasoning_steps(
    message_id: int,
    update_data: ReasoningStepsUpdate,
    service: ConversationService = Depends(get_conversation_service),
    cache: ResponseCache = Depends(get_cache)
):
    """Replace the reasoning steps attached to a message."""
    message = await service.update_message_reasoning_steps(message_id, update_data.steps)
    cache.invalidate_message(message_id)
    cache.invalidate_conversation(message.conversation_id)
    return message


@router.post(
    "/{message_id}/reasoning-steps/{step_index}/explain",
    response_model=ReasoningExplanationResponse,
    status_code=status.HTTP_201_CREATED
)
async def explain_reasoning_step(
    message_id: int,
    step_index: int,
    request_data: ExplanationRequest,
    service: ConversationService = Depends(get_conversation_service),
    llm_service: LLMService = Depends(get_llm_service)
):
    """Ask the model a question about one reasoning step and store the answer."""
    message = await service.get_message(message_id)
    if message is None:
        raise NotFoundError("Message", message_id)

    step = next(
        (s for s in message.reasoning_steps or [] if s.get("step_index") == step_index),
        None
    )
    if step is None:
        raise NotFoundError("Reasoning step", f"{step_index} of message {message_id}")

    content = await llm_service.explain_step(step["content"], request_data.question, message.model)
    return await service.create_reasoning_explanation(
        message_id,
        step_index,
        request_data.question,
        content
    )


@router.get(
    "/{message_id}/reasoning-steps/{step_index}/explanations",
    response_model=List[ReasoningExplanationResponse]
)
async def get_step_explanations(
    message_id: int,
    step_index: int,
    service: ConversationService = Depends(get_conversation_service)
):
    return await service.get_reasoning_explanations(message_id, step_index)
