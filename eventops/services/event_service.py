"""
Event record facade.

Thin CRUD over the `events` table. Creation here has no side effects; the
CRM reconciliation that follows a booking lives in lifecycle_service.
"""

from typing import Any

from pydantic import ValidationError

from eventops.db.helpers import DatabaseError
from eventops.db.store import RecordNotFoundError, RecordStore
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.domain.context import ServiceContext
from eventops.models.domain.event_domain import CreateEventRequest, Event, UpdateEventRequest

logger = get_logger(__name__)

EVENTS_TABLE = "events"


class EventServiceError(Exception):
    """Raised when the store rejects an event operation."""

    def __init__(self, message: str, event_id: str | None = None):
        super().__init__(message)
        self.event_id = event_id


class EventNotFoundError(EventServiceError):
    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found", event_id=event_id)


def to_event(row: dict[str, Any]) -> Event:
    try:
        return Event.model_validate(row)
    except ValidationError as e:
        event_id = str(row.get("id")) if row.get("id") else None
        logger.error("Malformed event row", event_id=event_id, errors=e.error_count())
        raise EventServiceError(f"Malformed event row: {e}", event_id=event_id) from e


class EventService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def create_event(self, ctx: ServiceContext, request: CreateEventRequest) -> Event:
        tenant_id, coordinator_id = ctx.require_owner()

        try:
            row = await self.store.insert(
                EVENTS_TABLE, request.to_record(tenant_id, coordinator_id)
            )
        except DatabaseError as e:
            logger.error("Event creation failed", tenant_id=tenant_id, title=request.title, error=str(e))
            raise EventServiceError(f"Could not create event '{request.title}': {e}") from e

        event = to_event(row)
        logger.info("Event created", tenant_id=tenant_id, event_id=event.id, status=event.status)
        return event

    async def get_event(self, ctx: ServiceContext, event_id: str) -> Event | None:
        tenant_id = ctx.require_tenant()
        try:
            rows = await self.store.find(EVENTS_TABLE, {"id": event_id, "tenant_id": tenant_id})
        except DatabaseError as e:
            raise EventServiceError(f"Could not load event: {e}", event_id=event_id) from e
        return to_event(rows[0]) if rows else None

    async def list_events(self, ctx: ServiceContext) -> list[Event]:
        tenant_id = ctx.require_tenant()
        try:
            rows = await self.store.find(
                EVENTS_TABLE, {"tenant_id": tenant_id}, order_by="event_date"
            )
        except DatabaseError as e:
            raise EventServiceError(f"Could not list events: {e}") from e
        return [to_event(row) for row in rows]

    async def update_event(
        self, ctx: ServiceContext, event_id: str, request: UpdateEventRequest
    ) -> Event:
        existing = await self.get_event(ctx, event_id)
        if existing is None:
            raise EventNotFoundError(event_id)

        changes = request.changes()
        if not changes:
            return existing

        try:
            row = await self.store.update(EVENTS_TABLE, event_id, changes)
        except RecordNotFoundError as e:
            raise EventNotFoundError(event_id) from e
        except DatabaseError as e:
            logger.error("Event update failed", event_id=event_id, error=str(e))
            raise EventServiceError(f"Could not update event: {e}", event_id=event_id) from e

        logger.info("Event updated", event_id=event_id, fields=sorted(changes))
        return to_event(row)

    async def delete_event(self, ctx: ServiceContext, event_id: str) -> bool:
        existing = await self.get_event(ctx, event_id)
        if existing is None:
            return False

        try:
            deleted = await self.store.delete(EVENTS_TABLE, event_id)
        except DatabaseError as e:
            raise EventServiceError(f"Could not delete event: {e}", event_id=event_id) from e

        logger.info("Event deleted", event_id=event_id, tenant_id=existing.tenant_id)
        return deleted
