"""
Run-of-show cue scheduling.

CueService reads and writes cue rows. RunOfShow is the ordered snapshot the
production view works from: it applies a confirmed status change to its own
list without re-fetching, and turns each attempt into an operator
notification.

No locking: two operators flipping the same cue race at the store and the
last write wins.
"""

from typing import Any

from pydantic import ValidationError

from eventops.config import settings
from eventops.db.helpers import DatabaseError
from eventops.db.store import RecordNotFoundError, RecordStore
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.domain.context import ServiceContext
from eventops.models.domain.cue_domain import (
    Cue,
    CueNotification,
    CueStatus,
    can_transition,
    is_running,
    operator_actions,
)
from eventops.services.realtime import RealtimeBroadcaster, cue_channel

logger = get_logger(__name__)

CUES_TABLE = "event_cues"


class CueServiceError(Exception):
    def __init__(self, message: str, cue_id: str | None = None):
        super().__init__(message)
        self.cue_id = cue_id


class CueNotFoundError(CueServiceError):
    def __init__(self, cue_id: str):
        super().__init__(f"Cue {cue_id} not found", cue_id=cue_id)


class CueEventNotFoundError(CueServiceError):
    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class IllegalCueTransitionError(CueServiceError):
    def __init__(self, cue_id: str, current: str, target: str):
        super().__init__(f"Cue cannot move from {current} to {target}", cue_id=cue_id)
        self.current = current
        self.target = target


class CueUpdateError(CueServiceError):
    """The store rejected the status write."""


def sort_cues(cues: list[Cue]) -> list[Cue]:
    return sorted(cues, key=lambda cue: cue.start_time)


def to_cue(row: dict[str, Any]) -> Cue:
    try:
        return Cue.model_validate(row)
    except ValidationError as e:
        cue_id = str(row.get("id")) if row.get("id") else None
        logger.error("Malformed cue row", cue_id=cue_id, errors=e.error_count())
        raise CueServiceError(f"Malformed cue row: {e}", cue_id=cue_id) from e


class CueService:
    def __init__(
        self,
        store: RecordStore,
        broadcaster: RealtimeBroadcaster | None = None,
        enforce_transitions: bool | None = None,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.enforce_transitions = (
            settings.CUE_ENFORCE_TRANSITIONS if enforce_transitions is None else enforce_transitions
        )

    async def _event_in_tenant(self, ctx: ServiceContext, event_id: str) -> bool:
        rows = await self.store.find("events", {"id": event_id, "tenant_id": ctx.require_tenant()})
        return bool(rows)

    async def list_cues_for_event(self, ctx: ServiceContext, event_id: str) -> list[Cue]:
        """Full snapshot of an event's cues, earliest first."""
        try:
            if not await self._event_in_tenant(ctx, event_id):
                raise CueEventNotFoundError(event_id)
            rows = await self.store.find(CUES_TABLE, {"event_id": event_id}, order_by="start_time")
        except DatabaseError as e:
            raise CueServiceError(f"Could not load cues: {e}") from e
        return sort_cues([to_cue(row) for row in rows])

    async def get_cue(self, ctx: ServiceContext, cue_id: str) -> Cue:
        try:
            rows = await self.store.find(CUES_TABLE, {"id": cue_id})
            if not rows:
                raise CueNotFoundError(cue_id)
            cue = to_cue(rows[0])
            if not await self._event_in_tenant(ctx, cue.event_id):
                raise CueNotFoundError(cue_id)
        except DatabaseError as e:
            raise CueServiceError(f"Could not load cue: {e}", cue_id=cue_id) from e
        return cue

    async def set_cue_status(self, ctx: ServiceContext, cue_id: str, new_status: CueStatus) -> Cue:
        """
        Persist a cue's new status and broadcast it.

        Raises:
            CueNotFoundError: unknown cue or cue of another tenant
            IllegalCueTransitionError: enforcement on and the move is not in the table
            CueUpdateError: the write failed (not retried)
        """
        current = await self.get_cue(ctx, cue_id)

        if self.enforce_transitions and not can_transition(current.status, new_status):
            logger.warning(
                "Illegal cue transition rejected",
                cue_id=cue_id,
                current=current.status,
                target=new_status,
            )
            raise IllegalCueTransitionError(cue_id, current.status, new_status)

        try:
            row = await self.store.update(CUES_TABLE, cue_id, {"status": new_status})
        except RecordNotFoundError as e:
            raise CueNotFoundError(cue_id) from e
        except DatabaseError as e:
            logger.error("Cue status update failed", cue_id=cue_id, target=new_status, error=str(e))
            raise CueUpdateError(f"Could not sync cue status: {e}", cue_id=cue_id) from e

        cue = to_cue(row)
        logger.info(
            "Cue status changed",
            cue_id=cue_id,
            event_id=cue.event_id,
            previous=current.status,
            status=cue.status,
        )

        if self.broadcaster is not None:
            await self.broadcaster.publish(
                cue_channel(cue.event_id),
                {"type": "UPDATE", "table": CUES_TABLE, "record": cue.model_dump(mode="json")},
            )
        return cue


class RunOfShow:
    """Ordered cue list for one event, as shown to the production crew."""

    def __init__(self, service: CueService, ctx: ServiceContext, event_id: str, cues: list[Cue]):
        self.service = service
        self.ctx = ctx
        self.event_id = event_id
        self.cues = sort_cues(cues)
        self.last_error: CueServiceError | None = None

    @classmethod
    async def load(cls, service: CueService, ctx: ServiceContext, event_id: str) -> "RunOfShow":
        cues = await service.list_cues_for_event(ctx, event_id)
        return cls(service, ctx, event_id, cues)

    def actions_for(self, cue: Cue) -> list[str]:
        return operator_actions(cue.status)

    def current_cue(self) -> Cue | None:
        return next((cue for cue in self.cues if is_running(cue.status)), None)

    async def set_cue_status(self, cue_id: str, new_status: CueStatus) -> CueNotification:
        self.last_error = None
        try:
            updated = await self.service.set_cue_status(self.ctx, cue_id, new_status)
        except CueServiceError as e:
            self.last_error = e
            return CueNotification.sync_failed()

        self.cues = [updated if cue.id == cue_id else cue for cue in self.cues]
        return CueNotification.for_status(updated)
