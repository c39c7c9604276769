#!/usr/bin/env python3
"""
Command line client for a Kadig server.

Usage:
    python -m kadigctl.cli <resource> <verb> [args] [options]

Examples:
    python -m kadigctl.cli user create alice
    python -m kadigctl.cli investment add "Tesouro Selic 2029" tesouro --amount 1000
    python -m kadigctl.cli investment redeem inv-123 --quantity 10
    python -m kadigctl.cli analytics projection --months 24
"""

from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

import click
import httpx

from kadigctl import config as cfg
from kadigctl import output as out
from kadigctl.client import APIError, KadigClient


# =============================================================================
# CLI Context
# =============================================================================


class Context:
    """CLI context holding configuration and the API client."""

    def __init__(self):
        self.api_url: str = "http://localhost:8000"
        self.api_key: str | None = None
        self.output_format: str = "table"
        self._client: KadigClient | None = None

    @property
    def client(self) -> KadigClient:
        if self._client is None:
            self._client = KadigClient(self.api_url, self.api_key)
        return self._client


pass_context = click.make_pass_decorator(Context, ensure=True)


@contextmanager
def api_call(ctx: Context):
    """Turn API and connection failures into an error message and exit code 1."""
    try:
        yield
    except APIError as e:
        out.error(e.detail)
        raise SystemExit(1)
    except httpx.ConnectError:
        out.error(f"Cannot connect to Kadig at {ctx.api_url}")
        raise SystemExit(1)


def decimal_option(ctx, param, value):
    """Validate a money or quantity option, keeping it as a string for JSON."""
    if value is None:
        return None
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"{value!r} is not a number")
    return str(parsed)


PORTFOLIO_COLUMNS = [
    ("id", "ID", 36),
    ("name", "Name", 20),
    ("total_value", "Value", 14),
    ("total_gain", "Gain", 12),
    ("cdi_percent", "Return %", 9),
    ("is_selected", "Selected", 8),
]

INVESTMENT_COLUMNS = [
    ("id", "ID", 36),
    ("asset_name", "Asset", 24),
    ("ticker", "Ticker", 8),
    ("quantity", "Quantity", 14),
    ("current_value", "Value", 14),
    ("gain_percent", "Gain %", 9),
]

MOVEMENT_COLUMNS = [
    ("movement_date", "Date", 10),
    ("type", "Type", 12),
    ("asset_name", "Asset", 24),
    ("quantity", "Quantity", 14),
    ("total_value", "Value", 14),
    ("portfolio_name", "Portfolio", 16),
    ("notes", "Notes", 30),
]


def show_ledger(ctx: Context, result: dict) -> None:
    """Print the outcome of an application, redemption or transfer."""
    if ctx.output_format != "table":
        out.output(result, ctx.output_format)
        return
    if result.get("closed"):
        out.success("Position closed")
    elif result.get("investment"):
        out.output(result["investment"], "table")
    out.info("")
    out.output(result.get("movements", []), "table", MOVEMENT_COLUMNS)


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.option(
    "--api-url", "-u",
    envvar="KADIG_API_URL",
    default=None,
    help="Kadig API URL (overrides config)",
)
@click.option(
    "--api-key", "-k",
    envvar="KADIG_API_KEY",
    default=None,
    help="API key (overrides config)",
)
@click.option(
    "--output", "-o",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format",
)
@pass_context
def cli(ctx: Context, api_url: str | None, api_key: str | None, output: str):
    """Track portfolios, positions and movements on a Kadig server."""
    config = cfg.load_config()
    ctx.api_url = api_url or config.get("api_url", "http://localhost:8000")
    ctx.api_key = api_key or config.get("api_key") or None
    ctx.output_format = output


# =============================================================================
# Config Commands
# =============================================================================


@cli.command("config")
@click.argument("action", required=False, type=click.Choice(["show", "set"]))
@click.argument("args", nargs=-1)
def config_cmd(action: str | None, args: tuple):
    """Manage CLI configuration.

    Without arguments: interactive setup.

    \b
    Examples:
        kadig config              # Interactive setup
        kadig config show         # Show current config
        kadig config set api_url http://localhost:8000
    """
    if action is None:
        config_path = cfg.find_config()
        if config_path:
            out.info(f"Config file found: {config_path}")
            current = cfg.load_config()
        else:
            out.info("No config file found. Creating new config.")
            current = cfg.get_default_config()

        api_url = click.prompt("Kadig API URL", default=current.get("api_url", "http://localhost:8000"))
        api_key = click.prompt("API key", default=current.get("api_key", ""), show_default=False)

        save_path = cfg.save_config({"api_url": api_url, "api_key": api_key}, config_path)
        out.success(f"Configuration saved to {save_path}")

    elif action == "show":
        config_path = cfg.find_config()
        if config_path is None:
            out.info("No configuration file found.")
            out.info("Run 'kadig config' to create one.")
            return

        out.info(f"Config file: {config_path}")
        out.info("")
        for key, value in cfg.load_config().items():
            if key == "api_key" and value:
                value = value[:6] + "..."
            out.info(f"  {key}: {value}")

    elif action == "set":
        if len(args) != 2:
            out.error("Usage: kadig config set <key> <value>")
            raise SystemExit(1)

        key, value = args
        if key not in cfg.VALID_KEYS:
            out.error(f"Unknown config key: {key}")
            out.info(f"Valid keys: {', '.join(sorted(cfg.VALID_KEYS))}")
            raise SystemExit(1)

        config = cfg.load_config()
        config[key] = value
        save_path = cfg.save_config(config, cfg.find_config())
        out.success(f"Set {key}")
        out.info(f"Saved to {save_path}")


# =============================================================================
# Admin Commands
# =============================================================================


@cli.group()
def user():
    """Manage users (admin)."""
    pass


@user.command("create")
@click.argument("user_id")
@pass_context
def user_create(ctx: Context, user_id: str):
    """Create a user and print its API key."""
    with api_call(ctx):
        data = ctx.client.create_user(user_id)
    out.success(f"Created user {data['user_id']}")
    out.info(f"API key: {data['api_key']}")
    out.warning("The key is not shown again. Store it now.")


@user.command("list")
@pass_context
def user_list(ctx: Context):
    """List all users."""
    with api_call(ctx):
        users = ctx.client.list_users()
    out.output(users, ctx.output_format, [("user_id", "User", 30), ("created_at", "Created", 26)])


@cli.group()
def snapshot():
    """Portfolio history snapshots."""
    pass


@snapshot.command("run")
@pass_context
def snapshot_run(ctx: Context):
    """Snapshot every portfolio for today."""
    with api_call(ctx):
        result = ctx.client.run_snapshots()
    out.output(result, ctx.output_format)
    if result.get("errors"):
        raise SystemExit(1)


# =============================================================================
# Profile Commands
# =============================================================================


@cli.group()
def profile():
    """Manage your investor profile."""
    pass


@profile.command("show")
@pass_context
def profile_show(ctx: Context):
    """Show your profile."""
    with api_call(ctx):
        data = ctx.client.get_profile()
    out.output(data, ctx.output_format)


@profile.command("create")
@click.argument("full_name")
@click.option(
    "--risk",
    type=click.Choice(["conservative", "moderate", "aggressive"]),
    required=True,
    help="Appetite for risk",
)
@click.option(
    "--experience",
    type=click.Choice(["beginner", "intermediate", "advanced"]),
    help="Investing experience",
)
@pass_context
def profile_create(ctx: Context, full_name: str, risk: str, experience: str | None):
    """Complete onboarding."""
    with api_call(ctx):
        data = ctx.client.create_profile(
            full_name=full_name, risk_tolerance=risk, experience=experience
        )
    out.output(data, ctx.output_format)


# =============================================================================
# Portfolio Commands
# =============================================================================


@cli.group()
def portfolio():
    """Manage portfolios."""
    pass


@portfolio.command("list")
@pass_context
def portfolio_list(ctx: Context):
    """List your portfolios."""
    with api_call(ctx):
        portfolios = ctx.client.list_portfolios()
    out.output(portfolios, ctx.output_format, PORTFOLIO_COLUMNS)


@portfolio.command("create")
@click.argument("name")
@pass_context
def portfolio_create(ctx: Context, name: str):
    """Create a portfolio."""
    with api_call(ctx):
        data = ctx.client.create_portfolio(name)
    out.success(f"Created portfolio {data['name']} ({data['id']})")


@portfolio.command("rename")
@click.argument("portfolio_id")
@click.argument("name")
@pass_context
def portfolio_rename(ctx: Context, portfolio_id: str, name: str):
    """Rename a portfolio."""
    with api_call(ctx):
        ctx.client.rename_portfolio(portfolio_id, name)
    out.success(f"Renamed to {name}")


@portfolio.command("select")
@click.argument("portfolio_id")
@pass_context
def portfolio_select(ctx: Context, portfolio_id: str):
    """Make a portfolio the one new positions go to."""
    with api_call(ctx):
        data = ctx.client.select_portfolio(portfolio_id)
    out.success(f"Selected {data['name']}")


@portfolio.command("delete")
@click.argument("portfolio_id")
@click.confirmation_option(prompt="Delete this portfolio and all of its positions?")
@pass_context
def portfolio_delete(ctx: Context, portfolio_id: str):
    """Delete a portfolio and its positions."""
    with api_call(ctx):
        ctx.client.delete_portfolio(portfolio_id)
    out.success(f"Deleted portfolio {portfolio_id}")


@portfolio.command("summary")
@pass_context
def portfolio_summary(ctx: Context):
    """Show totals across all portfolios."""
    with api_call(ctx):
        data = ctx.client.portfolio_summary()
    if ctx.output_format != "table":
        out.output(data, ctx.output_format)
        return
    portfolios = data.pop("portfolios", [])
    out.output(data, "table")
    out.info("")
    out.output(portfolios, "table", PORTFOLIO_COLUMNS)


@portfolio.command("history")
@click.argument("portfolio_id")
@click.option("--since", help="First day to include (YYYY-MM-DD)")
@pass_context
def portfolio_history(ctx: Context, portfolio_id: str, since: str | None):
    """Show the daily value history of a portfolio."""
    with api_call(ctx):
        points = ctx.client.portfolio_history(portfolio_id, since)
    columns = [
        ("snapshot_date", "Date", 10),
        ("total_value", "Value", 14),
        ("total_invested", "Invested", 14),
        ("gain_percent", "Gain %", 9),
        ("cdi_accumulated", "CDI %", 9),
        ("ipca_accumulated", "IPCA %", 9),
    ]
    out.output(points, ctx.output_format, columns)


# =============================================================================
# Investment Commands
# =============================================================================


@cli.group()
def investment():
    """Manage positions."""
    pass


@investment.command("list")
@click.option("--portfolio", "portfolio_id", help="Only this portfolio")
@click.option("--search", help="Match on name or ticker")
@pass_context
def investment_list(ctx: Context, portfolio_id: str | None, search: str | None):
    """List your positions."""
    with api_call(ctx):
        investments = ctx.client.list_investments(portfolio_id, search)
    out.output(investments, ctx.output_format, INVESTMENT_COLUMNS)


@investment.command("show")
@click.argument("investment_id")
@pass_context
def investment_show(ctx: Context, investment_id: str):
    """Show a position."""
    with api_call(ctx):
        data = ctx.client.get_investment(investment_id)
    out.output(data, ctx.output_format)


@investment.command("add")
@click.argument("asset_name")
@click.argument("asset_type")
@click.option("--ticker", help="Exchange ticker")
@click.option("--portfolio", "portfolio_id", help="Target portfolio (defaults to the selected one)")
@click.option("--quantity", callback=decimal_option, help="Units bought")
@click.option("--price", callback=decimal_option, help="Price paid per unit")
@click.option("--current-price", callback=decimal_option, help="Current quote per unit")
@click.option("--amount", callback=decimal_option, help="Total amount invested")
@click.option("--current-value", callback=decimal_option, help="Current value (amount-only)")
@click.option("--maturity", help="Maturity date (YYYY-MM-DD)")
@click.option("--date", "movement_date", help="Date of the purchase (YYYY-MM-DD)")
@pass_context
def investment_add(
    ctx: Context,
    asset_name: str,
    asset_type: str,
    ticker: str | None,
    portfolio_id: str | None,
    quantity: str | None,
    price: str | None,
    current_price: str | None,
    amount: str | None,
    current_value: str | None,
    maturity: str | None,
    movement_date: str | None,
):
    """Open a position.

    \b
    Examples:
        kadig investment add "Petrobras PN" acao --ticker PETR4 --quantity 100 --price 35.20
        kadig investment add "CDB Banco X" renda_fixa_pos --amount 5000
    """
    with api_call(ctx):
        result = ctx.client.create_investment(
            asset_name=asset_name,
            asset_type=asset_type,
            ticker=ticker,
            portfolio_id=portfolio_id,
            quantity=quantity,
            purchase_price=price,
            current_price=current_price,
            amount=amount,
            current_value=current_value,
            maturity_date=maturity,
            movement_date=movement_date,
        )
    show_ledger(ctx, result)


@investment.command("apply")
@click.argument("investment_id")
@click.option("--quantity", callback=decimal_option, help="Units bought")
@click.option("--price", callback=decimal_option, help="Price paid per unit")
@click.option("--amount", callback=decimal_option, help="Cash put in")
@click.option("--date", "movement_date", help="Date of the application (YYYY-MM-DD)")
@click.option("--notes", help="Free text kept on the movement")
@pass_context
def investment_apply(
    ctx: Context,
    investment_id: str,
    quantity: str | None,
    price: str | None,
    amount: str | None,
    movement_date: str | None,
    notes: str | None,
):
    """Add money or units to a position."""
    with api_call(ctx):
        result = ctx.client.add_application(
            investment_id,
            quantity=quantity,
            unit_price=price,
            amount=amount,
            movement_date=movement_date,
            notes=notes,
        )
    show_ledger(ctx, result)


@investment.command("redeem")
@click.argument("investment_id")
@click.option("--all", "total", is_flag=True, help="Redeem the whole position")
@click.option("--quantity", callback=decimal_option, help="Units to redeem")
@click.option("--amount", callback=decimal_option, help="Gross cash received")
@click.option("--date", "movement_date", help="Date of the redemption (YYYY-MM-DD)")
@click.option("--notes", help="Free text kept on the movement")
@pass_context
def investment_redeem(
    ctx: Context,
    investment_id: str,
    total: bool,
    quantity: str | None,
    amount: str | None,
    movement_date: str | None,
    notes: str | None,
):
    """Take money or units out of a position."""
    with api_call(ctx):
        result = ctx.client.add_redemption(
            investment_id,
            total=total,
            quantity=quantity,
            amount=amount,
            movement_date=movement_date,
            notes=notes,
        )
    show_ledger(ctx, result)


@investment.command("transfer")
@click.argument("investment_id")
@click.argument("target_portfolio_id")
@click.option("--copy", "copy_", is_flag=True, help="Copy instead of moving")
@pass_context
def investment_transfer(ctx: Context, investment_id: str, target_portfolio_id: str, copy_: bool):
    """Move (or copy) a position to another portfolio."""
    with api_call(ctx):
        result = ctx.client.transfer_investment(
            investment_id, target_portfolio_id, "copy" if copy_ else "move"
        )
    show_ledger(ctx, result)


@investment.command("delete")
@click.argument("investment_ids", nargs=-1, required=True)
@click.confirmation_option(prompt="Delete these positions? Their movements are kept.")
@pass_context
def investment_delete(ctx: Context, investment_ids: tuple[str, ...]):
    """Delete one or more positions."""
    with api_call(ctx):
        result = ctx.client.delete_investments(list(investment_ids))
    out.success(f"Deleted {result['deleted']} position(s)")


@investment.command("prices")
@click.argument("quotes", nargs=-1, required=True)
@pass_context
def investment_prices(ctx: Context, quotes: tuple[str, ...]):
    """Revalue positions from TICKER=PRICE quotes.

    \b
    Example:
        kadig investment prices PETR4=36.10 VALE3=61.45
    """
    parsed = {}
    for quote in quotes:
        ticker, sep, price = quote.partition("=")
        if not sep or not ticker:
            out.error(f"Invalid quote: {quote} (expected TICKER=PRICE)")
            raise SystemExit(1)
        try:
            parsed[ticker.upper()] = {"price": str(Decimal(price))}
        except InvalidOperation:
            out.error(f"Invalid price for {ticker}: {price}")
            raise SystemExit(1)

    with api_call(ctx):
        result = ctx.client.update_prices(parsed)
    out.success(
        f"Revalued {result['updated']} position(s) in {result['portfolios']} portfolio(s)"
    )


# =============================================================================
# Movement Commands
# =============================================================================


@cli.group()
def movement():
    """Browse the movement ledger."""
    pass


@movement.command("list")
@click.option("--portfolio", "portfolio_id", help="Only this portfolio")
@click.option(
    "--type", "movement_type",
    type=click.Choice(["application", "redemption", "transfer_in", "transfer_out"]),
    help="Only this movement type",
)
@click.option("--limit", type=click.IntRange(1, 1000), default=100, help="Maximum rows")
@click.option("--offset", type=click.IntRange(0), default=0, help="Rows to skip")
@pass_context
def movement_list(
    ctx: Context, portfolio_id: str | None, movement_type: str | None, limit: int, offset: int
):
    """List movements, newest first."""
    with api_call(ctx):
        movements = ctx.client.list_movements(portfolio_id, movement_type, limit, offset)
    out.output(movements, ctx.output_format, MOVEMENT_COLUMNS)


# =============================================================================
# Analytics Commands
# =============================================================================


@cli.group()
def analytics():
    """Portfolio analytics."""
    pass


portfolio_filter = click.option("--portfolio", "portfolio_id", help="Only this portfolio")


@analytics.command("risk")
@portfolio_filter
@pass_context
def analytics_risk(ctx: Context, portfolio_id: str | None):
    """Return, volatility and Sharpe ratio."""
    with api_call(ctx):
        data = ctx.client.analytics("risk-return", portfolio_id)
    if ctx.output_format != "table":
        out.output(data, ctx.output_format)
        return
    assets = data.pop("assets", [])
    out.output(data, "table")
    out.info("")
    columns = [
        ("name", "Asset", 24),
        ("return_percent", "Return %", 10),
        ("volatility", "Vol %", 8),
        ("sharpe", "Sharpe", 8),
    ]
    out.output(assets, "table", columns)


@analytics.command("projection")
@portfolio_filter
@click.option("--months", type=click.IntRange(1, 120), default=12, help="Horizon in months")
@pass_context
def analytics_projection(ctx: Context, portfolio_id: str | None, months: int):
    """Project the portfolio value under three scenarios."""
    with api_call(ctx):
        data = ctx.client.analytics("projection", portfolio_id, months=months)
    if ctx.output_format != "table":
        out.output(data, ctx.output_format)
        return
    rows = [{"scenario": name, **values} for name, values in data["scenarios"].items()]
    columns = [
        ("scenario", "Scenario", 12),
        ("final_value", "Final value", 14),
        ("gain", "Gain", 12),
        ("gain_percent", "Gain %", 9),
    ]
    out.info(f"Initial value: {out.format_value(data['initial_value'])}  ({months} months)")
    out.output(rows, "table", columns)


@analytics.command("gains")
@portfolio_filter
@pass_context
def analytics_gains(ctx: Context, portfolio_id: str | None):
    """Capital gains, overall and per asset class."""
    with api_call(ctx):
        data = ctx.client.analytics("capital-gains", portfolio_id)
    out.output(data, ctx.output_format)


@analytics.command("distribution")
@portfolio_filter
@pass_context
def analytics_distribution(ctx: Context, portfolio_id: str | None):
    """Value per asset class."""
    with api_call(ctx):
        data = ctx.client.analytics("distribution", portfolio_id)
    if ctx.output_format != "table":
        out.output(data, ctx.output_format)
        return
    columns = [("asset_class", "Class", 20), ("value", "Value", 14), ("weight", "Weight %", 9)]
    out.output(data["slices"], "table", columns)


@analytics.command("sensitivity")
@portfolio_filter
@pass_context
def analytics_sensitivity(ctx: Context, portfolio_id: str | None):
    """Which positions move the portfolio the most."""
    with api_call(ctx):
        data = ctx.client.analytics("sensitivity", portfolio_id)
    if ctx.output_format != "table":
        out.output(data, ctx.output_format)
        return
    columns = [
        ("name", "Asset", 24),
        ("weight", "Weight %", 9),
        ("contribution", "Contrib %", 10),
        ("impact", "Impact", 9),
    ]
    out.output(data["assets"], "table", columns)


@analytics.command("profitability")
@portfolio_filter
@pass_context
def analytics_profitability(ctx: Context, portfolio_id: str | None):
    """Return against CDI and IPCA."""
    with api_call(ctx):
        data = ctx.client.analytics("profitability", portfolio_id)
    out.output(data, ctx.output_format)


# =============================================================================
# Connection Commands
# =============================================================================


@cli.group()
def connection():
    """Manage Open Finance connections."""
    pass


@connection.command("list")
@pass_context
def connection_list(ctx: Context):
    """List your connections."""
    with api_call(ctx):
        connections = ctx.client.list_connections()
    columns = [
        ("id", "ID", 36),
        ("connector_name", "Institution", 24),
        ("status", "Status", 12),
        ("last_updated_at", "Updated", 26),
    ]
    out.output(connections, ctx.output_format, columns)


@connection.command("sync")
@click.argument("connection_id", required=False)
@click.option("--portfolio", "portfolio_id", help="Target portfolio (single connection only)")
@pass_context
def connection_sync(ctx: Context, connection_id: str | None, portfolio_id: str | None):
    """Import investments from one connection, or from all of them."""
    if connection_id is None:
        if portfolio_id:
            out.error("--portfolio needs a connection ID")
            raise SystemExit(1)
        with api_call(ctx):
            result = ctx.client.sync_connections()
        if ctx.output_format != "table":
            out.output(result, ctx.output_format)
            return
        for r in result["results"]:
            out.success(
                f"{r['connection_id']}: {r['created']} created, "
                f"{r['updated']} updated, {r['deleted']} deleted"
            )
        for connection_id in result["orphaned"]:
            out.warning(f"{connection_id}: removed, the institution no longer knows it")
        for connection_id in result["failed"]:
            out.error(f"{connection_id}: sync failed")
        if result["failed"]:
            raise SystemExit(1)
        return

    with api_call(ctx):
        r = ctx.client.sync_connection(connection_id, portfolio_id)
    out.output(r, ctx.output_format)


@connection.command("refresh")
@click.argument("connection_id")
@pass_context
def connection_refresh(ctx: Context, connection_id: str):
    """Refresh a connection's status from the aggregator."""
    with api_call(ctx):
        data = ctx.client.refresh_connection(connection_id)
    out.output(data, ctx.output_format)


@connection.command("disconnect")
@click.argument("connection_id")
@click.confirmation_option(prompt="Disconnect? Imported positions are kept.")
@pass_context
def connection_disconnect(ctx: Context, connection_id: str):
    """Remove a connection."""
    with api_call(ctx):
        ctx.client.disconnect(connection_id)
    out.success(f"Disconnected {connection_id}")


# =============================================================================
# Notification Commands
# =============================================================================


@cli.group()
def notification():
    """Read notifications."""
    pass


@notification.command("list")
@click.option("--unread", is_flag=True, help="Only unread notifications")
@pass_context
def notification_list(ctx: Context, unread: bool):
    """List notifications, newest first."""
    with api_call(ctx):
        notifications = ctx.client.list_notifications(unread)
    columns = [
        ("id", "ID", 36),
        ("title", "Title", 30),
        ("read", "Read", 4),
        ("created_at", "Created", 26),
    ]
    out.output(notifications, ctx.output_format, columns)


@notification.command("read")
@click.argument("notification_id")
@pass_context
def notification_read(ctx: Context, notification_id: str):
    """Mark a notification as read."""
    with api_call(ctx):
        data = ctx.client.mark_read(notification_id)
    out.output(data, ctx.output_format)


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@pass_context
def status(ctx: Context):
    """Show configuration and server health."""
    config_path = cfg.find_config()
    out.info("\nConfiguration")
    out.info("-" * 40)
    if config_path:
        out.info(f"Config file: {config_path}")
    else:
        out.info("Config file: " + click.style("Not found", fg="yellow"))
        out.info("  Run 'kadig config' to create one.")
    out.info("API key: " + ("set" if ctx.api_key else click.style("not set", fg="yellow")))

    out.info("\nServer Status")
    out.info("-" * 40)
    try:
        ctx.client.health()
        version = ctx.client.version()
        out.info(
            f"Kadig ({ctx.api_url}): " + click.style("OK", fg="green")
            + f"  version {version['version']}"
        )
    except httpx.ConnectError:
        out.info(f"Kadig ({ctx.api_url}): " + click.style("UNREACHABLE", fg="red"))
        raise SystemExit(1)
    except APIError as e:
        out.info(f"Kadig ({ctx.api_url}): " + click.style(f"ERROR ({e.status_code})", fg="red"))
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
