from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from eventops.models.domain.base import RecordModel

CLIENT_STATUSES = ("Lead", "Active", "Inactive")
DEFAULT_CLIENT_STATUS = "Lead"


class Client(RecordModel):
    """CRM contact, matched against event client details."""

    id: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    status: str | None = DEFAULT_CLIENT_STATUS
    source: str | None = None
    notes: str | None = None
    total_events: int | None = 0
    total_spent: Decimal | None = Decimal("0")
    tenant_id: str
    coordinator_id: str | None = None
    created_at: datetime | None = None


class CreateClientRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(..., min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = None
    notes: str | None = None
    source: str = "Direct"
    status: str = DEFAULT_CLIENT_STATUS

    def to_record(self, tenant_id: str, coordinator_id: str) -> dict[str, Any]:
        record = self.model_dump()
        record.update(
            tenant_id=tenant_id,
            coordinator_id=coordinator_id,
            total_events=0,
            total_spent=Decimal("0"),
        )
        return record


class UpdateClientRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = None
    notes: str | None = None
    source: str | None = None
    status: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ClientStats(BaseModel):
    """Tenant-wide CRM figures shown on the dashboard."""

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    total_spent: Decimal = Decimal("0")
    total_events: int = 0
    conversion_rate: float = 0.0
    avg_event_value: float = 0.0
