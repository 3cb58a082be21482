from __future__ import annotations

from fastapi import APIRouter, Depends

from ..models.message import DeleteSummaryResponse, SummaryResponse
from ..models.summary import empty_summary
from ..services import extraction as svc
from ..state import State, get_state

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/{conversation_id}/summary", response_model=SummaryResponse)
def get_summary(conversation_id: str, state: State = Depends(get_state)) -> SummaryResponse:
    summary = svc.current_summary(state, conversation_id)
    if summary is None:
        return SummaryResponse(conversation_id=conversation_id, summary=empty_summary(), exists=False)
    return SummaryResponse(conversation_id=conversation_id, summary=summary, exists=True)


@router.delete("/{conversation_id}/summary", response_model=DeleteSummaryResponse)
def delete_summary(conversation_id: str, state: State = Depends(get_state)) -> DeleteSummaryResponse:
    with state.locks.hold(conversation_id):
        deleted = state.summaries.delete(conversation_id)
    return DeleteSummaryResponse(success=True, deleted=deleted)
