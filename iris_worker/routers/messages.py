from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..models.message import ClearResponse, MessagesResponse, PostMessageRequest, PostMessageResponse
from ..services import extraction as svc
from ..state import State, get_state

router = APIRouter(prefix="/messages", tags=["messages"])
log = logging.getLogger("app")


@router.post("", response_model=PostMessageResponse)
def post_message(payload: PostMessageRequest, state: State = Depends(get_state)) -> PostMessageResponse:
    """Record a transcript chunk, re-extract and return the merged summary."""
    preview = payload.text[:100] + ("..." if len(payload.text) > 100 else "")
    log.info(f"message received: {preview!r}", extra={"conversation_id": payload.conversation_id})
    turn = svc.process_turn(state, payload.conversation_id, payload.text)
    return PostMessageResponse(ai_message=turn.message, summary=turn.summary)


@router.get("/{conversation_id}", response_model=MessagesResponse)
def get_messages(conversation_id: str, state: State = Depends(get_state)) -> MessagesResponse:
    messages = state.transcripts.messages(conversation_id)
    return MessagesResponse(conversation_id=conversation_id, messages=messages, count=len(messages))


@router.delete("/{conversation_id}", response_model=ClearResponse)
def clear_messages(conversation_id: str, state: State = Depends(get_state)) -> ClearResponse:
    svc.clear_conversation(state, conversation_id)
    return ClearResponse(success=True, message=f"Conversation {conversation_id} cleared")
