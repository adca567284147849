from pydantic import BaseModel, Field

from eventops.models.domain.cue_domain import Cue, CueNotification
from eventops.models.domain.event_domain import Event


class EventListResponse(BaseModel):
    events: list[Event]
    count: int


class CueView(BaseModel):
    cue: Cue
    actions: list[str] = Field(default_factory=list, description="Statuses the operator may move to")


class RunOfShowResponse(BaseModel):
    event_id: str
    cues: list[CueView]
    current_cue_id: str | None = None


class CueStatusChangeResponse(BaseModel):
    cue: Cue
    notification: CueNotification
    run_of_show: RunOfShowResponse
