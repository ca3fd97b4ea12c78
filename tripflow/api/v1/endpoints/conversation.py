"""
Conversation endpoints.

GET    /conversation-state?conversationId=   current TripState
POST   /conversation-state                   one slot answer
POST   /chat                                 free-text message
DELETE /conversation-state/{conversation_id} administrative removal
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from tripflow.agent.state_machine import DialogueEngine, TurnResult, prompt_for_slot
from tripflow.core.config import get_settings
from tripflow.core.errors import (
    InvalidConversationIdError,
    MissingConversationIdError,
    StaleStateError,
    StateStoreError,
    UnknownSlotError,
)
from tripflow.core.session import create_state_store, validate_conversation_id
from tripflow.models.schemas import (
    ChatRequest,
    ErrorResponse,
    StateResponse,
    TurnRequest,
    TurnResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid conversation id, unknown slot"},
    409: {"model": ErrorResponse, "description": "Conversation was updated concurrently, retry"},
    503: {"model": ErrorResponse, "description": "State store unavailable"},
}


@lru_cache
def get_engine() -> DialogueEngine:
    """Engine over the configured state store (one per process)."""
    settings = get_settings()
    store = create_state_store(settings.STATE_STORE_BACKEND, settings.STATE_STORE_DIR)
    return DialogueEngine.from_settings(settings, store)


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, (MissingConversationIdError, InvalidConversationIdError, UnknownSlotError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StaleStateError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=503, detail="Conversation state is temporarily unavailable")


def _turn_response(result: TurnResult) -> TurnResponse:
    return TurnResponse(
        success=result.success,
        status=result.status.value,
        message=result.confirmation_text,
        needs_clarification=result.needs_clarification,
        locked=result.locked,
        expected_slot=result.expected_slot,
        suggestions=result.suggestions,
        state=result.state.to_dict(),
    )


@router.get(
    "/conversation-state",
    response_model=StateResponse,
    responses=ERROR_RESPONSES,
    summary="Current conversation state",
)
def get_conversation_state(
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
    engine: DialogueEngine = Depends(get_engine),
) -> StateResponse:
    try:
        state = engine.get_state(conversation_id)
    except (MissingConversationIdError, InvalidConversationIdError, StateStoreError) as e:
        raise _http_error(e) from e
    return StateResponse(
        state=state.to_dict(),
        missing_required=state.missing_required(),
        prompt=prompt_for_slot(state, engine.lexicon),
    )


@router.post(
    "/conversation-state",
    response_model=TurnResponse,
    responses=ERROR_RESPONSES,
    summary="Answer one slot",
    description="""
    Applies one user answer to the conversation.

    **Example:**
    ```json
    {"conversationId": "abc-123", "slot": "destination", "value": "Paris"}
    ```

    Locked slots change only with `"explicitChange": true`.
    """,
)
def update_conversation_state(
    request: TurnRequest,
    engine: DialogueEngine = Depends(get_engine),
) -> TurnResponse:
    try:
        result = engine.process_turn(
            request.conversation_id,
            request.slot,
            request.value,
            explicit_change_requested=request.explicit_change,
        )
    except (MissingConversationIdError, InvalidConversationIdError, UnknownSlotError, StateStoreError) as e:
        raise _http_error(e) from e
    return _turn_response(result)


@router.post(
    "/chat",
    response_model=TurnResponse,
    responses=ERROR_RESPONSES,
    summary="Send a free-text message",
)
def chat(
    request: ChatRequest,
    engine: DialogueEngine = Depends(get_engine),
) -> TurnResponse:
    try:
        result = engine.process_message(request.conversation_id, request.message)
    except (MissingConversationIdError, InvalidConversationIdError, UnknownSlotError, StateStoreError) as e:
        raise _http_error(e) from e
    return _turn_response(result)


@router.delete(
    "/conversation-state/{conversation_id}",
    responses={404: {"model": ErrorResponse, "description": "Conversation not found"}, **ERROR_RESPONSES},
    summary="Delete a conversation",
)
def delete_conversation_state(
    conversation_id: str,
    engine: DialogueEngine = Depends(get_engine),
) -> dict:
    try:
        deleted = engine.store.delete(validate_conversation_id(conversation_id))
    except (InvalidConversationIdError, StateStoreError) as e:
        raise _http_error(e) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Conversation not found")
    logger.info(f"[{conversation_id}] Conversation deleted")
    return {"status": "deleted", "conversationId": conversation_id}
