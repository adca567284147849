"""
cues.py
-------
Purpose:
    Run-of-show board for an event.

Usage:
    GET   /events/{event_id}/cues                   - ordered cues with operator actions
    PATCH /events/{event_id}/cues/{cue_id}/status   - move a cue (pending/live/completed/overrun)
"""

from fastapi import APIRouter, Depends, HTTPException, status

from eventops.auth.context import context_dependency
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.api.responses import CueStatusChangeResponse, CueView, RunOfShowResponse
from eventops.models.domain.context import ServiceContext
from eventops.models.domain.cue_domain import CueStatusUpdateRequest
from eventops.routes.dependencies import get_cue_service
from eventops.services.cue_service import (
    CueEventNotFoundError,
    CueNotFoundError,
    CueService,
    CueServiceError,
    IllegalCueTransitionError,
    RunOfShow,
)

router = APIRouter(prefix="/events/{event_id}/cues", tags=["run-of-show"])
logger = get_logger(__name__)


def _board_response(board: RunOfShow) -> RunOfShowResponse:
    current = board.current_cue()
    return RunOfShowResponse(
        event_id=board.event_id,
        cues=[CueView(cue=cue, actions=board.actions_for(cue)) for cue in board.cues],
        current_cue_id=current.id if current else None,
    )


def _status_for(error: CueServiceError) -> int:
    if isinstance(error, (CueNotFoundError, CueEventNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, IllegalCueTransitionError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_502_BAD_GATEWAY


async def _load_board(service: CueService, ctx: ServiceContext, event_id: str) -> RunOfShow:
    try:
        return await RunOfShow.load(service, ctx, event_id)
    except CueServiceError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e


@router.get("", response_model=RunOfShowResponse)
async def get_run_of_show(
    event_id: str,
    ctx: ServiceContext = Depends(context_dependency),
    service: CueService = Depends(get_cue_service),
):
    board = await _load_board(service, ctx, event_id)
    return _board_response(board)


@router.patch("/{cue_id}/status", response_model=CueStatusChangeResponse)
async def set_cue_status(
    event_id: str,
    cue_id: str,
    request: CueStatusUpdateRequest,
    ctx: ServiceContext = Depends(context_dependency),
    service: CueService = Depends(get_cue_service),
):
    board = await _load_board(service, ctx, event_id)
    if not any(cue.id == cue_id for cue in board.cues):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cue not found")

    notification = await board.set_cue_status(cue_id, request.status)
    if board.last_error is not None:
        logger.warning(
            "Cue status change refused",
            event_id=event_id,
            cue_id=cue_id,
            target=request.status,
            error=str(board.last_error),
        )
        raise HTTPException(
            status_code=_status_for(board.last_error),
            detail={"message": str(board.last_error), "notification": notification.model_dump()},
        )

    cue = next(cue for cue in board.cues if cue.id == cue_id)
    return CueStatusChangeResponse(
        cue=cue, notification=notification, run_of_show=_board_response(board)
    )
