from decimal import Decimal

import pytest

from eventops.models.domain.client_domain import Client, CreateClientRequest, UpdateClientRequest
from eventops.services.client_service import (
    ClientNotFoundError,
    ClientService,
    ClientServiceError,
    compute_client_stats,
)


@pytest.mark.asyncio
async def test_create_client_defaults(store, ctx):
    client = await ClientService(store).create_client(ctx, CreateClientRequest(full_name="Dana Cruz"))

    assert client.status == "Lead"
    assert client.source == "Direct"
    assert client.total_events == 0
    assert client.total_spent == Decimal("0")
    assert client.tenant_id == "T1"
    assert client.coordinator_id == "coord-1"


@pytest.mark.asyncio
async def test_list_clients_newest_first(store):
    store.seed("clients", tenant_id="T1", full_name="First")
    store.seed("clients", tenant_id="T1", full_name="Second")
    store.seed("clients", tenant_id="T2", full_name="Elsewhere")

    clients = await ClientService(store).list_clients("T1")

    assert [client.full_name for client in clients] == ["Second", "First"]


@pytest.mark.asyncio
async def test_update_client(store, ctx):
    existing = store.seed("clients", tenant_id="T1", full_name="Dana Cruz", status="Lead")

    client = await ClientService(store).update_client(
        ctx, existing["id"], UpdateClientRequest(status="Active")
    )

    assert client.status == "Active"
    assert client.full_name == "Dana Cruz"


@pytest.mark.asyncio
async def test_update_client_of_other_tenant(store, ctx):
    foreign = store.seed("clients", tenant_id="T2", full_name="Dana Cruz")

    with pytest.raises(ClientNotFoundError):
        await ClientService(store).update_client(ctx, foreign["id"], UpdateClientRequest(status="Active"))


@pytest.mark.asyncio
async def test_client_stats(store, ctx, seed_event):
    store.seed("clients", tenant_id="T1", full_name="A", status="Active", total_spent=Decimal("3000"))
    store.seed("clients", tenant_id="T1", full_name="B", status="Lead", total_spent=Decimal("1000"))
    store.seed("clients", tenant_id="T1", full_name="C", status=None, total_spent=None)
    store.seed("clients", tenant_id="T1", full_name="D", status="Active", total_spent=Decimal("0"))
    seed_event()
    seed_event()

    stats = await ClientService(store).get_client_stats(ctx)

    assert stats.total == 4
    assert stats.by_status == {"Active": 2, "Lead": 2}
    assert stats.total_spent == Decimal("4000")
    assert stats.total_events == 2
    assert stats.conversion_rate == pytest.approx(50.0)
    assert stats.avg_event_value == pytest.approx(2000.0)


@pytest.mark.asyncio
async def test_client_stats_store_failure(store, ctx):
    store.fail_on.add(("find", "events"))

    with pytest.raises(ClientServiceError):
        await ClientService(store).get_client_stats(ctx)


def test_empty_stats_are_zero():
    stats = compute_client_stats([], 0)

    assert stats.total == 0
    assert stats.conversion_rate == 0.0
    assert stats.avg_event_value == 0.0


def test_stats_without_events_has_no_average():
    clients = [Client(id="c1", full_name="A", tenant_id="T1", total_spent=Decimal("500"))]

    assert compute_client_stats(clients, 0).avg_event_value == 0.0
