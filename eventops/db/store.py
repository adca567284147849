"""
Record store used by the services.

The services only ever need filtered reads, single-row inserts and partial
updates by id, so that is the whole contract. Row isolation per tenant is
the caller's filter plus the row-level security policies on the Supabase
side.
"""

from typing import Any, Protocol

from psycopg import sql

from eventops.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one
from eventops.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

TABLES = frozenset({"events", "clients", "event_cues", "profiles", "server_members"})


class RecordNotFoundError(DatabaseError):
    """Raised when an update targets a row that does not exist."""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"No {table} row with id {record_id}", operation="update")
        self.table = table
        self.record_id = record_id


class RecordStore(Protocol):
    async def find(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]: ...

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]: ...

    async def update(
        self, table: str, record_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def delete(self, table: str, record_id: str) -> bool: ...


def _table(table: str) -> sql.Identifier:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    return sql.Identifier(table)


def build_select(
    table: str, filters: dict[str, Any], order_by: str | None = None, descending: bool = False
) -> tuple[sql.Composed, tuple]:
    query = sql.SQL("SELECT * FROM {}").format(_table(table))
    if filters:
        conditions = sql.SQL(" AND ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in filters
        )
        query = sql.SQL("{} WHERE {}").format(query, conditions)
    if order_by:
        direction = sql.SQL("DESC" if descending else "ASC")
        query = sql.SQL("{} ORDER BY {} {}").format(query, sql.Identifier(order_by), direction)
    return query, tuple(filters.values())


def build_insert(table: str, record: dict[str, Any]) -> tuple[sql.Composed, tuple]:
    if not record:
        raise ValueError("Cannot insert an empty record")
    query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
        _table(table),
        sql.SQL(", ").join(sql.Identifier(column) for column in record),
        sql.SQL(", ").join(sql.Placeholder() for _ in record),
    )
    return query, tuple(record.values())


def build_update(
    table: str, record_id: str, partial: dict[str, Any]
) -> tuple[sql.Composed, tuple]:
    if not partial:
        raise ValueError("Cannot update with an empty change set")
    assignments = sql.SQL(", ").join(
        sql.SQL("{} = %s").format(sql.Identifier(column)) for column in partial
    )
    query = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
        _table(table), assignments
    )
    return query, (*partial.values(), record_id)


class PostgresRecordStore:
    """RecordStore backed by the pooled Supabase Postgres connection."""

    async def find(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        query, params = build_select(table, filters, order_by, descending)
        return await fetch_all(query, params)

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        query, params = build_insert(table, record)
        row = await fetch_one(query, params)
        if row is None:
            raise DatabaseError(f"Insert into {table} returned no row", operation="insert")
        return row

    async def update(
        self, table: str, record_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]:
        query, params = build_update(table, record_id, partial)
        row = await fetch_one(query, params)
        if row is None:
            raise RecordNotFoundError(table, record_id)
        return row

    async def delete(self, table: str, record_id: str) -> bool:
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(_table(table))
        affected = await execute_query(query, (record_id,))
        logger.debug("Record deleted", table=table, record_id=record_id, affected=affected)
        return affected > 0


record_store = PostgresRecordStore()


def get_record_store() -> RecordStore:
    """FastAPI dependency; overridden in tests."""
    return record_store
