"""
Resolve the ServiceContext for a request.

The actor is the JWT subject; the coordinator is the same user. The tenant
is taken from the X-Tenant-ID header when the client sends one, otherwise
from the server the user last selected (`profiles.current_server_id`).
A header tenant is only accepted when the user has a `server_members` row
for it.
"""

from fastapi import Depends, Header, HTTPException, status

from eventops.auth.verify import auth_dependency
from eventops.db.helpers import DatabaseError
from eventops.db.store import RecordStore, get_record_store
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.domain.context import MISSING_CONTEXT_MESSAGE, ServiceContext

logger = get_logger(__name__)


class TenantAccessDeniedError(Exception):
    """Raised when the requested tenant is not one the user belongs to."""

    def __init__(self, tenant_id: str, user_id: str):
        super().__init__(f"User {user_id} is not a member of tenant {tenant_id}")
        self.tenant_id = tenant_id
        self.user_id = user_id


async def is_tenant_member(store: RecordStore, tenant_id: str, user_id: str) -> bool:
    memberships = await store.find("server_members", {"server_id": tenant_id, "profile_id": user_id})
    return bool(memberships)


async def resolve_context(
    claims: dict, store: RecordStore, tenant_header: str | None = None
) -> ServiceContext:
    user_id = claims.get("sub")
    if not user_id:
        return ServiceContext(tenant_id=None, coordinator_id=None)

    tenant_id = tenant_header
    if tenant_id:
        if not await is_tenant_member(store, tenant_id, user_id):
            raise TenantAccessDeniedError(tenant_id, user_id)
    else:
        profiles = await store.find("profiles", {"id": user_id})
        if profiles:
            current = profiles[0].get("current_server_id")
            tenant_id = str(current) if current else None

    return ServiceContext(tenant_id=tenant_id, coordinator_id=user_id, actor_id=user_id)


async def context_dependency(
    claims: dict = Depends(auth_dependency),
    store: RecordStore = Depends(get_record_store),
    x_tenant_id: str | None = Header(default=None),
) -> ServiceContext:
    if not claims.get("sub"):
        logger.error("No user ID in JWT claims")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing user ID"
        )

    try:
        ctx = await resolve_context(claims, store, x_tenant_id)
    except TenantAccessDeniedError as e:
        logger.warning("Tenant access denied", user_id=e.user_id, tenant_id=e.tenant_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of the requested tenant"
        ) from e
    except DatabaseError as e:
        logger.error("Could not resolve tenant", user_id=claims.get("sub"), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Could not resolve tenant"
        ) from e

    if not ctx.tenant_id:
        logger.warning("Request without active tenant", user_id=ctx.actor_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=MISSING_CONTEXT_MESSAGE)

    return ctx
