"""Connection service - Open Finance links through Pluggy.

Whenever the aggregator reports that an item no longer exists, the local
connection is removed and the user is notified (handle_orphaned_connection),
then ConnectionOrphanedError tells the caller what happened.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kadig import telemetry
from kadig.clients.pluggy import ItemNotFoundError, PluggyClient, PluggyError
from kadig.database import utcnow
from kadig.models import SOURCE_PLUGGY, Investment, PluggyConnection, Portfolio
from kadig.schemas.connection import ConnectionCreate
from kadig.services import portfolios as portfolio_service
from kadig.services.investments import delete_positions
from kadig.services.notifications import add_notification
from kadig.services.portfolios import new_id
from kadig.services.positions import PERCENT_STEP, PRICE_STEP, calculate_gain_percent, money

logger = logging.getLogger(__name__)

OPEN_FINANCE_PORTFOLIO_NAME = "Open Finance"
DEFAULT_STATUS = "PENDING"
SYNCED_STATUS = "UPDATED"

PLUGGY_TYPE_LABELS = {
    "MUTUAL_FUND": "Fundos",
    "SECURITY": "Ações",
    "EQUITY": "Ações",
    "FIXED_INCOME": "Renda Fixa",
    "ETF": "ETF",
    "COE": "COE",
    "PENSION": "Previdência",
    "CRYPTOCURRENCY": "Cripto",
    "REAL_ESTATE": "FIIs",
}


class ConnectionOrphanedError(Exception):
    """The aggregator no longer knows the item; the local connection was removed."""

    def __init__(self, connection_id: str, connector_name: str | None):
        self.connection_id = connection_id
        self.connector_name = connector_name
        name = connector_name or "the institution"
        super().__init__(
            f"The connection with {name} no longer exists at the aggregator "
            "and was removed. Connect the account again to keep syncing."
        )


@dataclass
class SyncResult:
    connection_id: str
    portfolio_id: str
    created: int = 0
    updated: int = 0
    deleted: int = 0


@dataclass
class SyncAllResult:
    results: list[SyncResult] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class ImportedPosition:
    """An aggregator investment mapped onto position fields."""

    pluggy_investment_id: str
    asset_name: str
    asset_type: str
    ticker: str | None
    quantity: Decimal
    purchase_price: Decimal
    current_price: Decimal
    current_value: Decimal
    total_invested: Decimal
    gain_percent: Decimal
    maturity_date: date | None


def map_investment_type(pluggy_type: str | None) -> str:
    return PLUGGY_TYPE_LABELS.get(pluggy_type or "", "Outros")


def _decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def map_investment(data: dict[str, Any]) -> ImportedPosition:
    """Map an aggregator investment onto position fields.

    Value is the balance (or amount), cost basis is amountOriginal (or
    amount), quantity defaults to 1. The gain comes from amountProfit when
    the aggregator reports it.
    """
    quantity = _decimal(data.get("quantity")) or Decimal("1")
    if quantity <= 0:
        quantity = Decimal("1")

    value = _decimal(data.get("balance")) or _decimal(data.get("amount")) or Decimal("0")
    invested = (
        _decimal(data.get("amountOriginal")) or _decimal(data.get("amount")) or Decimal("0")
    )
    value = max(value, Decimal("0"))
    invested = max(invested, Decimal("0"))

    profit = _decimal(data.get("amountProfit"))
    if profit is not None and invested > 0:
        gain_percent = (profit / invested * 100).quantize(PERCENT_STEP)
    else:
        gain_percent = calculate_gain_percent(value, invested)

    due = data.get("dueDate")
    maturity = date.fromisoformat(due.split("T")[0]) if due else None

    return ImportedPosition(
        pluggy_investment_id=data["id"],
        asset_name=data.get("name") or "Investimento",
        asset_type=map_investment_type(data.get("type")),
        ticker=data.get("code") or data.get("isin"),
        quantity=quantity,
        purchase_price=(invested / quantity).quantize(PRICE_STEP),
        current_price=(value / quantity).quantize(PRICE_STEP),
        current_value=money(value),
        total_invested=money(invested),
        gain_percent=gain_percent,
        maturity_date=maturity,
    )


async def create_connect_token(client: PluggyClient, item_id: str | None = None) -> str:
    """Token for the Connect widget."""
    data = await client.create_connect_token(item_id)
    return data["accessToken"]


async def list_connections(session: AsyncSession, user_id: str) -> list[PluggyConnection]:
    """Get the user's connections, newest first."""
    result = await session.execute(
        select(PluggyConnection)
        .where(PluggyConnection.user_id == user_id)
        .order_by(PluggyConnection.created_at.desc())
    )
    return list(result.scalars().all())


async def get_connection(
    session: AsyncSession, user_id: str, connection_id: str
) -> PluggyConnection | None:
    result = await session.execute(
        select(PluggyConnection).where(
            PluggyConnection.id == connection_id, PluggyConnection.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def register_connection(
    session: AsyncSession, user_id: str, data: ConnectionCreate
) -> PluggyConnection:
    """Store (or refresh) a connection after the widget succeeds.

    Raises:
        ValueError: If the item is registered to another user
    """
    result = await session.execute(
        select(PluggyConnection).where(PluggyConnection.item_id == data.item_id)
    )
    connection = result.scalar_one_or_none()

    if connection is not None and connection.user_id != user_id:
        raise ValueError("Item is already connected to another user")

    if connection is None:
        connection = PluggyConnection(id=new_id(), user_id=user_id, item_id=data.item_id)
        session.add(connection)

    connection.connector_id = data.connector_id
    connection.connector_name = data.connector_name
    connection.connector_image_url = data.connector_image_url
    connection.connector_primary_color = data.connector_primary_color
    connection.status = data.status or DEFAULT_STATUS
    connection.last_updated_at = utcnow()

    await session.commit()
    await session.refresh(connection)
    logger.info("Connection %s registered for user %s", data.item_id, user_id)
    return connection


async def handle_orphaned_connection(
    session: AsyncSession, connection: PluggyConnection
) -> ConnectionOrphanedError:
    """Remove a connection whose item vanished and tell the user.

    Returns the error for the caller to raise.
    """
    connector_name = connection.connector_name
    error = ConnectionOrphanedError(connection.id, connector_name)

    add_notification(
        session,
        connection.user_id,
        title="Connection removed",
        body=str(error),
    )
    await session.delete(connection)
    await session.commit()

    telemetry.record_orphaned_connection(connector_name)
    logger.warning(
        "Connection %s (item %s) no longer exists at the aggregator; removed",
        connection.id,
        connection.item_id,
    )
    return error


async def refresh_connection(
    session: AsyncSession, client: PluggyClient, user_id: str, connection_id: str
) -> PluggyConnection | None:
    """Update a connection's status and connector metadata from the aggregator.

    Raises:
        ConnectionOrphanedError: If the item no longer exists
    """
    connection = await get_connection(session, user_id, connection_id)
    if connection is None:
        return None

    try:
        item = await client.get_item(connection.item_id)
    except ItemNotFoundError:
        raise await handle_orphaned_connection(session, connection)

    connector = item.get("connector") or {}
    connection.status = item.get("status") or connection.status
    if connector:
        connection.connector_id = connector.get("id", connection.connector_id)
        connection.connector_name = connector.get("name", connection.connector_name)
        connection.connector_image_url = connector.get("imageUrl", connection.connector_image_url)
        connection.connector_primary_color = connector.get(
            "primaryColor", connection.connector_primary_color
        )
    connection.last_updated_at = utcnow()

    await session.commit()
    await session.refresh(connection)
    return connection


async def get_connection_details(
    session: AsyncSession, client: PluggyClient, user_id: str, connection_id: str
) -> tuple[PluggyConnection, list[dict], list[dict]] | None:
    """Accounts and investments the aggregator holds for a connection.

    Raises:
        ConnectionOrphanedError: If the item no longer exists
    """
    connection = await get_connection(session, user_id, connection_id)
    if connection is None:
        return None

    try:
        accounts = await client.get_accounts(connection.item_id)
        investments = await client.get_investments(connection.item_id)
    except ItemNotFoundError:
        raise await handle_orphaned_connection(session, connection)

    return connection, accounts, investments


async def disconnect(
    session: AsyncSession, client: PluggyClient, user_id: str, connection_id: str
) -> bool:
    """Delete the item at the aggregator (if it still exists) and locally.

    Imported positions stay in their portfolios.

    Returns:
        False if the connection wasn't found
    """
    connection = await get_connection(session, user_id, connection_id)
    if connection is None:
        return False

    try:
        await client.delete_item(connection.item_id)
    except ItemNotFoundError:
        logger.info("Item %s already gone at the aggregator", connection.item_id)

    await session.delete(connection)
    await session.commit()
    logger.info("Connection %s removed for user %s", connection_id, user_id)
    return True


async def _target_portfolio(
    session: AsyncSession, user_id: str, portfolio_id: str | None
) -> Portfolio | None:
    if portfolio_id is not None:
        return await portfolio_service.get_portfolio(session, user_id, portfolio_id)

    portfolio = await portfolio_service.get_oldest_portfolio(session, user_id)
    if portfolio is None:
        portfolio = await portfolio_service.create_portfolio(
            session, user_id, OPEN_FINANCE_PORTFOLIO_NAME, commit=False
        )
    return portfolio


async def _import_investments(
    session: AsyncSession,
    connection: PluggyConnection,
    portfolio: Portfolio,
    remote: list[dict[str, Any]],
) -> SyncResult:
    """Upsert the item's investments into the portfolio and drop vanished ones."""
    result = await session.execute(
        select(Investment).where(
            Investment.user_id == connection.user_id,
            Investment.portfolio_id == portfolio.id,
            Investment.source == SOURCE_PLUGGY,
            Investment.pluggy_investment_id.is_not(None),
        )
    )
    existing = {inv.pluggy_investment_id: inv for inv in result.scalars().all()}

    outcome = SyncResult(connection_id=connection.id, portfolio_id=portfolio.id)
    seen = set()
    for data in remote:
        imported = map_investment(data)
        seen.add(imported.pluggy_investment_id)

        investment = existing.get(imported.pluggy_investment_id)
        if investment is None:
            investment = Investment(
                id=new_id(),
                user_id=connection.user_id,
                portfolio_id=portfolio.id,
                source=SOURCE_PLUGGY,
                pluggy_investment_id=imported.pluggy_investment_id,
                pluggy_item_id=connection.item_id,
                total_invested=imported.total_invested,
                purchase_price=imported.purchase_price,
            )
            session.add(investment)
            outcome.created += 1
        else:
            outcome.updated += 1

        investment.pluggy_item_id = connection.item_id
        investment.asset_name = imported.asset_name
        investment.asset_type = imported.asset_type
        investment.ticker = imported.ticker
        investment.quantity = imported.quantity
        investment.current_price = imported.current_price
        investment.current_value = imported.current_value
        investment.total_invested = imported.total_invested
        investment.gain_percent = imported.gain_percent
        investment.maturity_date = imported.maturity_date

    vanished = [
        inv.id
        for pluggy_id, inv in existing.items()
        if pluggy_id not in seen and inv.pluggy_item_id in (None, connection.item_id)
    ]
    if vanished:
        await delete_positions(session, vanished)
        outcome.deleted = len(vanished)

    await portfolio_service.recalculate_totals(session, portfolio)
    connection.last_updated_at = utcnow()
    return outcome


async def sync_connection(
    session: AsyncSession,
    client: PluggyClient,
    user_id: str,
    connection_id: str,
    portfolio_id: str | None = None,
) -> SyncResult | None:
    """Import one connection's investments into a portfolio.

    Returns:
        None if the connection or portfolio wasn't found

    Raises:
        ConnectionOrphanedError: If the item no longer exists
    """
    connection = await get_connection(session, user_id, connection_id)
    if connection is None:
        return None
    portfolio = await _target_portfolio(session, user_id, portfolio_id)
    if portfolio is None:
        return None

    try:
        remote = await client.get_investments(connection.item_id)
    except ItemNotFoundError:
        telemetry.record_pluggy_sync("orphaned")
        raise await handle_orphaned_connection(session, connection)

    outcome = await _import_investments(session, connection, portfolio, remote)
    await session.commit()

    telemetry.record_pluggy_sync("ok")
    logger.info(
        "Synced connection %s: %d created, %d updated, %d deleted",
        connection.item_id,
        outcome.created,
        outcome.updated,
        outcome.deleted,
    )
    return outcome


async def sync_all(session: AsyncSession, client: PluggyClient, user_id: str) -> SyncAllResult:
    """Import every connection into the user's oldest portfolio.

    A user without portfolios gets one named "Open Finance". Orphaned items
    are removed and listed; other aggregator failures are listed as failed.
    """
    summary = SyncAllResult()
    connections = await list_connections(session, user_id)
    if not connections:
        return summary

    portfolio = await _target_portfolio(session, user_id, None)
    portfolio_id = portfolio.id
    await session.commit()

    for connection in connections:
        connection_id = connection.id
        try:
            remote = await client.get_investments(connection.item_id)
        except ItemNotFoundError:
            await handle_orphaned_connection(session, connection)
            summary.orphaned.append(connection_id)
            telemetry.record_pluggy_sync("orphaned")
            continue
        except PluggyError:
            logger.exception("Sync failed for connection %s", connection.item_id)
            summary.failed.append(connection_id)
            telemetry.record_pluggy_sync("error")
            continue

        portfolio = await session.get(Portfolio, portfolio_id)
        outcome = await _import_investments(session, connection, portfolio, remote)
        connection.status = SYNCED_STATUS
        await session.commit()

        summary.results.append(outcome)
        telemetry.record_pluggy_sync("ok")

    logger.info(
        "Synced %d connections for user %s (%d orphaned, %d failed)",
        len(summary.results),
        user_id,
        len(summary.orphaned),
        len(summary.failed),
    )
    return summary
