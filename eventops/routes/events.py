"""
events.py
---------
Purpose:
    Event booking and editing for the active tenant.

Usage:
    GET    /events          - list events, soonest first
    POST   /events          - book an event, then reconcile its client before responding
    GET    /events/{id}     - single event
    PATCH  /events/{id}     - partial update
    DELETE /events/{id}     - remove an event
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from eventops.auth.context import context_dependency
from eventops.infrastructure.observability.logging import get_logger
from eventops.models.api.responses import EventListResponse
from eventops.models.domain.context import ServiceContext
from eventops.models.domain.event_domain import CreateEventRequest, Event, UpdateEventRequest
from eventops.routes.dependencies import get_event_service, get_lifecycle_service
from eventops.services.event_service import EventNotFoundError, EventService, EventServiceError
from eventops.services.lifecycle_service import LifecycleService

router = APIRouter(prefix="/events", tags=["events"])
logger = get_logger(__name__)


def _service_unavailable(e: EventServiceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("", response_model=EventListResponse)
async def list_events(
    ctx: ServiceContext = Depends(context_dependency),
    service: EventService = Depends(get_event_service),
):
    try:
        events = await service.list_events(ctx)
    except EventServiceError as e:
        raise _service_unavailable(e) from e
    return EventListResponse(events=events, count=len(events))


@router.post("", response_model=Event, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: CreateEventRequest,
    ctx: ServiceContext = Depends(context_dependency),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    """
    Book an event.

    The CRM client sync outcome is only logged; a failed sync still returns 201.
    """
    try:
        result = await lifecycle.create_event_with_sync(ctx, request)
    except EventServiceError as e:
        raise _service_unavailable(e) from e

    logger.info(
        "Event booked",
        event_id=result.event.id,
        tenant_id=ctx.tenant_id,
        client_sync=result.client_sync.outcome,
        client_id=result.client_sync.client_id,
    )
    return result.event


@router.get("/{event_id}", response_model=Event)
async def get_event(
    event_id: str,
    ctx: ServiceContext = Depends(context_dependency),
    service: EventService = Depends(get_event_service),
):
    try:
        event = await service.get_event(ctx, event_id)
    except EventServiceError as e:
        raise _service_unavailable(e) from e

    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.patch("/{event_id}", response_model=Event)
async def update_event(
    event_id: str,
    request: UpdateEventRequest,
    ctx: ServiceContext = Depends(context_dependency),
    service: EventService = Depends(get_event_service),
):
    try:
        return await service.update_event(ctx, event_id, request)
    except EventNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except EventServiceError as e:
        raise _service_unavailable(e) from e


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    ctx: ServiceContext = Depends(context_dependency),
    service: EventService = Depends(get_event_service),
):
    try:
        deleted = await service.delete_event(ctx, event_id)
    except EventServiceError as e:
        raise _service_unavailable(e) from e

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
