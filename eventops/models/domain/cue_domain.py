"""
Run-of-show cue models and the cue status state machine.

    pending -> live -> completed
              +-> overrun
    completed -> pending   (manual reopen)

Overrun has no outgoing transition; the operator resolves it outside the
scheduler. On the run-of-show board it still counts as running.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from eventops.models.domain.base import RecordModel

CueStatus = Literal["pending", "live", "completed", "overrun"]
CueType = Literal["program", "av", "catering", "talent", "transition"]

CUE_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"live"}),
    "live": frozenset({"completed", "overrun"}),
    "completed": frozenset({"pending"}),
    "overrun": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in CUE_TRANSITIONS.get(current, frozenset())


def operator_actions(status: str) -> list[str]:
    """Target statuses the run-of-show controls offer for a cue in `status`."""
    return sorted(CUE_TRANSITIONS.get(status, frozenset()))


def is_running(status: str) -> bool:
    """Live and overrun cues are both on air; overrun is only stored distinctly."""
    return status in ("live", "overrun")


class Cue(RecordModel):
    """One timed activity within an event's run of show."""

    id: str
    event_id: str
    start_time: datetime
    duration_minutes: int = Field(0, ge=0)
    title: str
    description: str | None = None
    status: CueStatus = "pending"
    cue_type: CueType = "program"
    assigned_to: str | None = None


class CueStatusUpdateRequest(BaseModel):
    status: CueStatus


class CueNotification(BaseModel):
    """User-facing message after a status change attempt."""

    title: str
    description: str | None = None
    variant: Literal["default", "destructive"] = "default"

    @classmethod
    def for_status(cls, cue: Cue) -> "CueNotification":
        return cls(title=f"Cue is now {cue.status.upper()}", description=cue.title)

    @classmethod
    def sync_failed(cls) -> "CueNotification":
        return cls(title="Update failed", description="Could not sync cue status.", variant="destructive")
