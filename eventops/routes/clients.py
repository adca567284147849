"""
clients.py
----------
Purpose:
    CRM client list, manual entry and dashboard statistics for the active tenant.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from eventops.auth.context import context_dependency
from eventops.db.helpers import DatabaseError
from eventops.models.domain.client_domain import (
    Client,
    ClientStats,
    CreateClientRequest,
    UpdateClientRequest,
)
from eventops.models.domain.context import ServiceContext
from eventops.routes.dependencies import get_client_service
from eventops.services.client_service import ClientNotFoundError, ClientService, ClientServiceError

router = APIRouter(prefix="/clients", tags=["crm"])


@router.get("", response_model=list[Client])
async def list_clients(
    ctx: ServiceContext = Depends(context_dependency),
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.list_clients(ctx.require_tenant())
    except DatabaseError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.get("/stats", response_model=ClientStats)
async def client_stats(
    ctx: ServiceContext = Depends(context_dependency),
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.get_client_stats(ctx)
    except ClientServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
    request: CreateClientRequest,
    ctx: ServiceContext = Depends(context_dependency),
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.create_client(ctx, request)
    except ClientServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.patch("/{client_id}", response_model=Client)
async def update_client(
    client_id: str,
    request: UpdateClientRequest,
    ctx: ServiceContext = Depends(context_dependency),
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.update_client(ctx, client_id, request)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ClientServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
