"""
Message-related Pydantic schemas.
"""

from pydantic import Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime

from .common import CamelModel


Role = Literal["system", "user", "assistant"]


class StepExplanation(CamelModel):
    """Explanation attached inline to a reasoning step."""
    id: Optional[int] = None
    content: str
    created_at: Optional[str] = None


class ReasoningStep(CamelModel):
    """One step of an assistant's reasoning, shown in learning mode."""
    step_index: int = Field(..., ge=0)
    content: str
    type: Literal["premise", "reasoning", "evidence", "conclusion", "alternative"]
    is_pinned: bool = False
    explanations: List[StepExplanation] = Field(default_factory=list)


class ReasoningStepsUpdate(CamelModel):
    """Schema for attaching reasoning steps to a message."""
    steps: List[ReasoningStep]


class ExplanationRequest(CamelModel):
    """Schema for asking about a reasoning step."""
    question: str = Field(..., min_length=1)


class ReasoningExplanationResponse(CamelModel):
    """Reasoning explanation response schema."""
    id: int
    message_id: int
    step_index: int
    question: str
    content: str
    created_at: datetime


class MessageCreate(CamelModel):
    """Schema for creating a message."""
    role: Role
    content: str
    conversation_id: str
    branch_id: Optional[str] = None
    parent_id: Optional[int] = None
    model: Optional[str] = None
    is_truncated: bool = False


class MessageResponse(CamelModel):
    """Message response schema."""
    id: int
    role: str
    content: str
    conversation_id: str
    branch_id: Optional[str] = None
    parent_id: Optional[int] = None
    model: Optional[str] = None
    timestamp: datetime
    reasoning_steps: List[ReasoningStep] = Field(default_factory=list)
    has_reasoning_steps: bool = False
    is_truncated: bool = False


class ChatRequest(CamelModel):
    """Options for one chat turn."""
    message: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None
    reasoning_mode: bool = False
    system_prompt: Optional[str] = None
    parent_message_id: Optional[int] = None
    branch_id: Optional[str] = None
    model_id: Optional[str] = None

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class StreamChunk(CamelModel):
    """One relayed delta from the provider."""
    content: str
    is_complete: Literal[False] = False
    conversation_id: str


class StreamComplete(CamelModel):
    """Final record of a successful turn."""
    content: str = ""
    is_complete: Literal[True] = True
    message: str
    conversation_id: str
    message_id: int
    branch_id: Optional[str] = None


class StreamError(CamelModel):
    """Final record of a turn whose provider stream broke."""
    content: str = ""
    is_complete: Literal[True] = True
    error: Literal[True] = True
    message: str
    detail: str
    conversation_id: str
    branch_id: Optional[str] = None
