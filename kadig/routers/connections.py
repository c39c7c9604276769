"""Open Finance connection endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.clients.pluggy import PluggyClient, PluggyError, get_pluggy_client
from kadig.database import get_session
from kadig.models import User
from kadig.schemas.connection import (
    ConnectionCreate,
    ConnectionDetailsResponse,
    ConnectionResponse,
    ConnectTokenRequest,
    ConnectTokenResponse,
    SyncAllResponse,
    SyncRequest,
    SyncResultResponse,
)
from kadig.services import connections as connection_service
from kadig.services.connections import ConnectionOrphanedError, SyncResult

router = APIRouter()


def _aggregator_error(e: PluggyError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Aggregator error: {e.detail}",
    )


def _orphaned(e: ConnectionOrphanedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _sync_response(result: SyncResult) -> SyncResultResponse:
    return SyncResultResponse(
        connection_id=result.connection_id,
        portfolio_id=result.portfolio_id,
        created=result.created,
        updated=result.updated,
        deleted=result.deleted,
    )


@router.post(
    "/connections/connect-token",
    response_model=ConnectTokenResponse,
    summary="Get a token for the Connect widget",
)
async def connect_token(
    data: ConnectTokenRequest,
    user: User = Depends(get_current_user),
    client: PluggyClient = Depends(get_pluggy_client),
) -> ConnectTokenResponse:
    """Pass **item_id** to reconnect an existing connection."""
    try:
        token = await connection_service.create_connect_token(client, data.item_id)
    except PluggyError as e:
        raise _aggregator_error(e)
    return ConnectTokenResponse(access_token=token)


@router.post(
    "/connections",
    response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a connection",
)
async def register_connection(
    data: ConnectionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ConnectionResponse:
    """Store the item the Connect widget created. Registering it again updates it."""
    try:
        connection = await connection_service.register_connection(session, user.id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ConnectionResponse.model_validate(connection)


@router.get(
    "/connections",
    response_model=list[ConnectionResponse],
    summary="List your connections",
)
async def list_connections(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[ConnectionResponse]:
    connections = await connection_service.list_connections(session, user.id)
    return [ConnectionResponse.model_validate(c) for c in connections]


@router.post(
    "/connections/sync",
    response_model=SyncAllResponse,
    summary="Sync every connection",
)
async def sync_all(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    client: PluggyClient = Depends(get_pluggy_client),
) -> SyncAllResponse:
    """Import the investments of all your connections into your oldest portfolio.

    Connections the aggregator no longer knows are removed and listed in
    **orphaned**.
    """
    result = await connection_service.sync_all(session, client, user.id)
    return SyncAllResponse(
        results=[_sync_response(r) for r in result.results],
        orphaned=result.orphaned,
        failed=result.failed,
    )


@router.post(
    "/connections/{connection_id}/refresh",
    response_model=ConnectionResponse,
    summary="Refresh a connection's status",
)
async def refresh_connection(
    connection_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    client: PluggyClient = Depends(get_pluggy_client),
) -> ConnectionResponse:
    try:
        connection = await connection_service.refresh_connection(
            session, client, user.id, connection_id
        )
    except ConnectionOrphanedError as e:
        raise _orphaned(e)
    except PluggyError as e:
        raise _aggregator_error(e)

    if connection is None:
        raise HTTPException(status_code=404, detail="Connection not found")
    return ConnectionResponse.model_validate(connection)


@router.get(
    "/connections/{connection_id}/details",
    response_model=ConnectionDetailsResponse,
    summary="Accounts and investments of a connection",
)
async def connection_details(
    connection_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    client: PluggyClient = Depends(get_pluggy_client),
) -> ConnectionDetailsResponse:
    try:
        details = await connection_service.get_connection_details(
            session, client, user.id, connection_id
        )
    except ConnectionOrphanedError as e:
        raise _orphaned(e)
    except PluggyError as e:
        raise _aggregator_error(e)

    if details is None:
        raise HTTPException(status_code=404, detail="Connection not found")
    connection, accounts, investments = details
    return ConnectionDetailsResponse(
        connection=ConnectionResponse.model_validate(connection),
        accounts=accounts,
        investments=investments,
    )


@router.post(
    "/connections/{connection_id}/sync",
    response_model=SyncResultResponse,
    summary="Sync one connection",
)
async def sync_connection(
    connection_id: str,
    data: SyncRequest | None = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    client: PluggyClient = Depends(get_pluggy_client),
) -> SyncResultResponse:
    """Import this connection's investments.

    Positions the aggregator no longer reports are removed; the counts come
    back as **created**, **updated** and **deleted**.
    """
    portfolio_id = data.portfolio_id if data else None
    try:
        result = await connection_service.sync_connection(
            session, client, user.id, connection_id, portfolio_id
        )
    except ConnectionOrphanedError as e:
        raise _orphaned(e)
    except PluggyError as e:
        raise _aggregator_error(e)

    if result is None:
        raise HTTPException(status_code=404, detail="Connection or portfolio not found")
    return _sync_response(result)


@router.delete(
    "/connections/{connection_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Disconnect",
)
async def disconnect(
    connection_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    client: PluggyClient = Depends(get_pluggy_client),
) -> None:
    """Remove the connection at the aggregator and here. Imported positions stay."""
    try:
        deleted = await connection_service.disconnect(session, client, user.id, connection_id)
    except PluggyError as e:
        raise _aggregator_error(e)

    if not deleted:
        raise HTTPException(status_code=404, detail="Connection not found")
