"""
CRM client records for a tenant.
"""

from decimal import Decimal
from typing import Any

from eventops.db.helpers import DatabaseError
from eventops.db.store import RecordNotFoundError, RecordStore
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.domain.client_domain import (
    DEFAULT_CLIENT_STATUS,
    Client,
    ClientStats,
    CreateClientRequest,
    UpdateClientRequest,
)
from eventops.models.domain.context import ServiceContext

logger = get_logger(__name__)

CLIENTS_TABLE = "clients"


class ClientServiceError(Exception):
    def __init__(self, message: str, client_id: str | None = None):
        super().__init__(message)
        self.client_id = client_id


class ClientNotFoundError(ClientServiceError):
    def __init__(self, client_id: str):
        super().__init__(f"Client {client_id} not found", client_id=client_id)


class ClientService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def list_clients(self, tenant_id: str) -> list[Client]:
        """All clients of a tenant, newest first."""
        rows = await self.store.find(
            CLIENTS_TABLE, {"tenant_id": tenant_id}, order_by="created_at", descending=True
        )
        return [Client.model_validate(row) for row in rows]

    async def insert_client(self, record: dict[str, Any]) -> Client:
        row = await self.store.insert(CLIENTS_TABLE, record)
        return Client.model_validate(row)

    async def set_total_events(self, client_id: str, total_events: int) -> Client:
        row = await self.store.update(CLIENTS_TABLE, client_id, {"total_events": total_events})
        return Client.model_validate(row)

    async def create_client(self, ctx: ServiceContext, request: CreateClientRequest) -> Client:
        tenant_id, coordinator_id = ctx.require_owner()
        try:
            client = await self.insert_client(request.to_record(tenant_id, coordinator_id))
        except DatabaseError as e:
            logger.error("Client creation failed", tenant_id=tenant_id, error=str(e))
            raise ClientServiceError(f"Could not create client: {e}") from e

        logger.info("Client created", tenant_id=tenant_id, client_id=client.id, source=client.source)
        return client

    async def update_client(
        self, ctx: ServiceContext, client_id: str, request: UpdateClientRequest
    ) -> Client:
        tenant_id = ctx.require_tenant()
        try:
            existing = await self.store.find(CLIENTS_TABLE, {"id": client_id, "tenant_id": tenant_id})
            if not existing:
                raise ClientNotFoundError(client_id)

            changes = request.changes()
            if not changes:
                return Client.model_validate(existing[0])

            row = await self.store.update(CLIENTS_TABLE, client_id, changes)
        except RecordNotFoundError as e:
            raise ClientNotFoundError(client_id) from e
        except DatabaseError as e:
            raise ClientServiceError(f"Could not update client: {e}", client_id=client_id) from e

        return Client.model_validate(row)

    async def get_client_stats(self, ctx: ServiceContext) -> ClientStats:
        tenant_id = ctx.require_tenant()
        try:
            clients = await self.list_clients(tenant_id)
            events = await self.store.find("events", {"tenant_id": tenant_id})
        except DatabaseError as e:
            raise ClientServiceError(f"Could not load client statistics: {e}") from e

        return compute_client_stats(clients, len(events))


def compute_client_stats(clients: list[Client], event_count: int) -> ClientStats:
    by_status: dict[str, int] = {}
    total_spent = Decimal("0")

    for client in clients:
        status = client.status or DEFAULT_CLIENT_STATUS
        by_status[status] = by_status.get(status, 0) + 1
        total_spent += client.total_spent or Decimal("0")

    total = len(clients)
    active = by_status.get("Active", 0)

    return ClientStats(
        total=total,
        by_status=by_status,
        total_spent=total_spent,
        total_events=event_count,
        conversion_rate=(active / total * 100) if total else 0.0,
        avg_event_value=float(total_spent / event_count) if event_count else 0.0,
    )
