from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from eventops.models.domain.base import RecordModel

# Known event statuses. The column is free text so new states can be added
# without a migration; anything non-empty is preserved as-is.
EVENT_STATUSES = ("planning", "active", "completed", "cancelled")
DEFAULT_EVENT_STATUS = "planning"


class Event(RecordModel):
    """One production engagement."""

    id: str
    title: str
    description: str | None = None
    event_date: datetime
    call_time: datetime | None = None
    location: str | None = None
    status: str = DEFAULT_EVENT_STATUS
    event_type: str | None = None
    client_name: str = ""
    client_email: str | None = None
    client_phone: str | None = None
    budget: Decimal = Decimal("0")
    coordinator_id: str
    tenant_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Nullable columns; NULL reads back as the field default
    @field_validator("status", "client_name", "budget", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def has_client(self) -> bool:
        return bool(self.client_name and self.client_name.strip())


class CreateEventRequest(BaseModel):
    """Fields a caller may supply when booking an event. Ownership comes from the context."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200)
    event_date: datetime
    description: str | None = None
    call_time: datetime | None = None
    location: str | None = None
    status: str = Field(DEFAULT_EVENT_STATUS, min_length=1)
    event_type: str | None = None
    client_name: str = ""
    client_email: str | None = None
    client_phone: str | None = None
    budget: Decimal = Field(Decimal("0"), ge=0)

    def to_record(self, tenant_id: str, coordinator_id: str) -> dict[str, Any]:
        record = self.model_dump()
        record["client_name"] = self.client_name.strip()
        record["tenant_id"] = tenant_id
        record["coordinator_id"] = coordinator_id
        return record


class UpdateEventRequest(BaseModel):
    """Partial update. Identifiers and ownership are not accepted."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=200)
    event_date: datetime | None = None
    description: str | None = None
    call_time: datetime | None = None
    location: str | None = None
    status: str | None = Field(None, min_length=1)
    event_type: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    budget: Decimal | None = Field(None, ge=0)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
