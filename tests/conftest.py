import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from eventops.db.helpers import DatabaseError
from eventops.db.store import RecordNotFoundError
from eventops.models.domain.context import ServiceContext

BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


class FakeRecordStore:
    """In-memory RecordStore. `fail_on` holds (operation, table) pairs that raise."""

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[tuple[str, str]] = set()
        self._clock = 0

    def _check(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if (operation, table) in self.fail_on:
            raise DatabaseError(f"{operation} on {table} failed", operation=operation)

    def _now(self) -> datetime:
        self._clock += 1
        return BASE_TIME + timedelta(seconds=self._clock)

    def seed(self, table: str, **record: Any) -> dict[str, Any]:
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", self._now())
        self.tables.setdefault(table, []).append(record)
        return record

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def calls_for(self, table: str) -> list[str]:
        return [operation for operation, name in self.calls if name == table]

    async def find(self, table, filters, order_by=None, descending=False):
        self._check("find", table)
        rows = [
            dict(row)
            for row in self.rows(table)
            if all(row.get(column) == value for column, value in filters.items())
        ]
        if order_by:
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        return rows

    async def insert(self, table, record):
        self._check("insert", table)
        row = dict(record)
        row["id"] = str(uuid.uuid4())
        row["created_at"] = self._now()
        row.setdefault("updated_at", row["created_at"])
        self.tables.setdefault(table, []).append(row)
        return dict(row)

    async def update(self, table, record_id, partial):
        self._check("update", table)
        for row in self.rows(table):
            if row["id"] == record_id:
                row.update(partial)
                return dict(row)
        raise RecordNotFoundError(table, record_id)

    async def delete(self, table, record_id):
        self._check("delete", table)
        before = len(self.rows(table))
        self.tables[table] = [row for row in self.rows(table) if row["id"] != record_id]
        return len(self.tables[table]) < before


class FakeBroadcaster:
    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    async def publish(self, channel: str, payload: dict) -> bool:
        self.published.append((channel, payload))
        return True


@pytest.fixture
def store():
    return FakeRecordStore()


@pytest.fixture
def fake_broadcaster():
    return FakeBroadcaster()


@pytest.fixture
def ctx():
    return ServiceContext(tenant_id="T1", coordinator_id="coord-1", actor_id="coord-1")


@pytest.fixture
def seed_event(store):
    def _seed(tenant_id: str = "T1", **fields):
        fields.setdefault("title", "Launch Party")
        fields.setdefault("event_date", BASE_TIME + timedelta(days=30))
        fields.setdefault("client_name", "")
        fields.setdefault("coordinator_id", "coord-1")
        return store.seed("events", tenant_id=tenant_id, **fields)

    return _seed


@pytest.fixture
def seed_cue(store):
    def _seed(event_id: str, minutes: int, **fields):
        fields.setdefault("title", f"Cue at +{minutes}m")
        fields.setdefault("status", "pending")
        fields.setdefault("cue_type", "program")
        fields.setdefault("duration_minutes", 10)
        return store.seed(
            "event_cues",
            event_id=event_id,
            start_time=BASE_TIME + timedelta(minutes=minutes),
            **fields,
        )

    return _seed
