"""
Explicit per-call context.

Every tenant-scoped service call receives one of these instead of looking
up the session or the selected server on its own.
"""

from dataclasses import dataclass

MISSING_CONTEXT_MESSAGE = "must be authenticated and have an active tenant selected"


class MissingContextError(Exception):
    """Raised when a call needs a tenant or coordinator the caller does not have."""

    def __init__(self, message: str = MISSING_CONTEXT_MESSAGE, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


@dataclass(frozen=True, slots=True)
class ServiceContext:
    tenant_id: str | None
    coordinator_id: str | None
    actor_id: str | None = None

    def require_tenant(self) -> str:
        if not self.tenant_id:
            raise MissingContextError(missing=["tenant_id"])
        return self.tenant_id

    def require_owner(self) -> tuple[str, str]:
        """Tenant and coordinator, both mandatory for creating records."""
        missing = [
            name
            for name, value in (("tenant_id", self.tenant_id), ("coordinator_id", self.coordinator_id))
            if not value
        ]
        if missing:
            raise MissingContextError(missing=missing)
        return self.tenant_id, self.coordinator_id
