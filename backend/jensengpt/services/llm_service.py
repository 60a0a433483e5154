"""
LLM service for the OpenAI-compatible chat completion provider.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI, AsyncStream, OpenAIError
from openai.types.chat import ChatCompletionChunk

from ..config import settings
from ..exceptions import LLMServiceError

logger = logging.getLogger(__name__)

EXPLANATION_SYSTEM_PROMPT = (
    "You are an educational assistant explaining one step of a reasoning process. "
    "Answer the user's question about the step clearly and concisely, in plain language."
)


class CompletionStream:
    """Text deltas of one streamed completion.

    Iterating yields the non-empty content deltas in provider order. Provider
    failures while reading surface as :class:`LLMServiceError`.
    """

    def __init__(self, stream: AsyncStream[ChatCompletionChunk]):
        self._stream = stream
        self.closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._deltas()

    async def _deltas(self) -> AsyncIterator[str]:
        try:
            async for chunk in self._stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except OpenAIError as e:
            raise LLMServiceError(f"Provider stream failed: {e}") from e

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._stream.close()


class LLMService:
    """Service for LLM interactions."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        model_id: Optional[str] = None,
        api_key: Optional[str] = None
    ):
        self.api_base = api_base or settings.LLM_API_BASE
        self.model_id = model_id or settings.DEFAULT_MODEL_ID
        self.api_key = api_key or settings.LLM_API_KEY or "not-needed"

        self.client = AsyncOpenAI(
            base_url=self.api_base,
            api_key=self.api_key,
            timeout=settings.LLM_TIMEOUT_SECONDS
        )

    async def list_models(self) -> List[Dict[str, Any]]:
        """List available models from the LLM API."""
        try:
            response = await self.client.models.list()
        except OpenAIError as e:
            logger.warning("Error listing models: %s", e)
            return [{"id": self.model_id, "owned_by": "default", "created": None}]

        models = []
        for model in response.data:
            models.append({
                "id": model.id,
                "owned_by": getattr(model, "owned_by", "unknown"),
                "created": getattr(model, "created", None)
            })
        return models

    async def open_stream(
        self,
        messages: List[Dict[str, str]],
        model_id: Optional[str] = None
    ) -> CompletionStream:
        """Start a streamed completion; fails before any delta is produced."""
        model = model_id or self.model_id
        try:
            stream = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=settings.LLM_TEMPERATURE,
                top_p=settings.LLM_TOP_P,
                max_tokens=settings.LLM_MAX_TOKENS,
                frequency_penalty=0,
                presence_penalty=0,
                stream=True
            )
        except OpenAIError as e:
            logger.error("Failed to open completion stream for %s: %s", model, e)
            raise LLMServiceError(f"Failed to reach the model provider: {e}") from e

        logger.debug("Opened completion stream for %s with %d messages", model, len(messages))
        return CompletionStream(stream)

    async def explain_step(
        self,
        step_content: str,
        question: str,
        model_id: Optional[str] = None
    ) -> str:
        """Non-streaming answer to a question about one reasoning step."""
        try:
            response = await self.client.chat.completions.create(
                model=model_id or self.model_id,
                messages=[
                    {"role": "system", "content": EXPLANATION_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f"Reasoning step:\n{step_content}\n\nQuestion: {question}"
                    }
                ],
                temperature=0.3,
                max_tokens=1024
            )
        except OpenAIError as e:
            raise LLMServiceError(f"Failed to generate explanation: {e}") from e

        return (response.choices[0].message.content or "").strip()
