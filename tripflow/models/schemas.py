"""
API schemas.

Request and response models of the REST API (camelCase on the wire).
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from tripflow.models.domain import CamelModel, ExpectedSlot


class TurnRequest(CamelModel):
    """
    One answer for one slot.

    Attributes:
        conversation_id: Conversation key
        slot: Targeted slot (defaults to the expected slot)
        value: What the user said
        explicit_change: The user asked to change an already locked slot
    """
    conversation_id: Optional[str] = Field(default=None, description="Conversation id")
    slot: Optional[str] = Field(default=None, description="Slot name, e.g. \"destination\" or \"dates-confirm\"")
    value: str = Field(default="", max_length=2000, description="Raw user answer")
    explicit_change: bool = Field(default=False, description="Explicit change of a locked slot")


class ChatRequest(CamelModel):
    """Free-text message; change requests are detected automatically."""
    conversation_id: Optional[str] = Field(default=None, description="Conversation id")
    message: str = Field(min_length=1, max_length=2000, description="User message")


class TurnResponse(CamelModel):
    success: bool = Field(description="Transition applied")
    status: str = Field(description="accepted | clarification | rejected_validation | rejected_locked")
    message: str = Field(description="Confirmation text or question for the user")
    needs_clarification: bool
    locked: bool
    expected_slot: ExpectedSlot
    suggestions: list[str] = Field(default_factory=list)
    state: dict[str, Any] = Field(description="Serialized TripState")


class StateResponse(CamelModel):
    state: dict[str, Any] = Field(description="Serialized TripState")
    missing_required: list[str] = Field(default_factory=list)
    prompt: str = Field(description="Question for the expected slot")


class HealthResponse(CamelModel):
    """Health check response."""
    status: str = Field(description="Service status")
    service: str = Field(description="Service name")
    version: str = Field(description="Version")


class ErrorResponse(CamelModel):
    """Error response."""
    error: str = Field(description="Error description")
    detail: Optional[str] = Field(default=None, description="Error details")
