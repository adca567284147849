"""
Event booking pipeline.

Creating an event is the primary operation and must succeed on its own.
Reconciling the event's client contact with the CRM runs afterwards as a
best-effort step: its outcome is reported next to the event, never instead
of it.

Known limitation: the reconcile step reads the tenant's clients, decides,
then writes. Two bookings for the same new contact racing each other can
both miss the lookup and create two clients. There is no lock or version
check; the last write wins.
"""

from dataclasses import dataclass, field
from typing import Literal

from eventops.db.store import RecordStore
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.domain.client_domain import Client
from eventops.models.domain.context import ServiceContext
from eventops.models.domain.event_domain import CreateEventRequest, Event
from eventops.services.client_service import ClientService
from eventops.services.event_service import EventService
from eventops.services.realtime import RealtimeBroadcaster, event_channel

logger = get_logger(__name__)

EVENT_CREATION_SOURCE = "Event Creation"
NEW_CLIENT_STATUS = "Lead"

SyncOutcome = Literal["created", "incremented", "skipped", "failed"]


@dataclass(slots=True)
class ClientSyncResult:
    outcome: SyncOutcome
    client_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome != "failed"


@dataclass(slots=True)
class EventCreationResult:
    event: Event
    client_sync: ClientSyncResult = field(default_factory=lambda: ClientSyncResult("skipped"))


def find_matching_clients(
    clients: list[Client], client_name: str, client_email: str | None
) -> list[Client]:
    """Clients matching by exact email or exact full name, in the given order."""
    matches = []
    for client in clients:
        if client_email and client.email == client_email:
            matches.append(client)
        elif client.full_name == client_name:
            matches.append(client)
    return matches


class LifecycleService:
    def __init__(self, store: RecordStore, broadcaster: RealtimeBroadcaster | None = None):
        self.events = EventService(store)
        self.clients = ClientService(store)
        self.broadcaster = broadcaster

    async def create_event_with_sync(
        self, ctx: ServiceContext, request: CreateEventRequest
    ) -> EventCreationResult:
        """
        Persist a new event, then make sure its client exists in the CRM.

        Raises:
            MissingContextError: no tenant or coordinator on the context
            EventServiceError: the event itself could not be stored

        Reconciliation errors are caught and reported in
        `EventCreationResult.client_sync`.
        """
        ctx.require_owner()

        event = await self.events.create_event(ctx, request)

        if not event.has_client:
            logger.info("Client sync skipped, event has no client name", event_id=event.id)
            client_sync = ClientSyncResult("skipped")
        else:
            client_sync = await self._sync_client(ctx, event)

        await self._announce(event)
        return EventCreationResult(event=event, client_sync=client_sync)

    async def _sync_client(self, ctx: ServiceContext, event: Event) -> ClientSyncResult:
        try:
            return await self.reconcile_client(ctx, event)
        except Exception as e:
            logger.error(
                "Client sync failed, event kept",
                event_id=event.id,
                tenant_id=event.tenant_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ClientSyncResult("failed", error=str(e))

    async def reconcile_client(self, ctx: ServiceContext, event: Event) -> ClientSyncResult:
        """Find-or-create the event's client and count the booking against it."""
        clients = await self.clients.list_clients(event.tenant_id)
        matches = find_matching_clients(clients, event.client_name, event.client_email)

        if not matches:
            client = await self.clients.insert_client(
                {
                    "tenant_id": event.tenant_id,
                    "coordinator_id": ctx.coordinator_id,
                    "full_name": event.client_name,
                    "email": event.client_email,
                    "phone": event.client_phone,
                    "status": NEW_CLIENT_STATUS,
                    "source": EVENT_CREATION_SOURCE,
                    "notes": f"Auto-created from event: {event.title}",
                    "total_events": 1,
                }
            )
            logger.info("Client created from event", event_id=event.id, client_id=client.id)
            return ClientSyncResult("created", client_id=client.id)

        if len(matches) > 1:
            logger.warning(
                "duplicate_client_match",
                event_id=event.id,
                tenant_id=event.tenant_id,
                match_count=len(matches),
                client_ids=[client.id for client in matches],
            )

        target = matches[0]
        updated = await self.clients.set_total_events(target.id, (target.total_events or 0) + 1)
        logger.info(
            "Client event count incremented",
            event_id=event.id,
            client_id=updated.id,
            total_events=updated.total_events,
        )
        return ClientSyncResult("incremented", client_id=updated.id)

    async def _announce(self, event: Event) -> None:
        if self.broadcaster is None:
            return
        await self.broadcaster.publish(
            event_channel(event.tenant_id),
            {"type": "INSERT", "table": "events", "record": event.model_dump(mode="json")},
        )
