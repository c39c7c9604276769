#!/usr/bin/env python3
"""
Management script for the Kadig database (direct access, bypasses the API).

Usage:
    python manage.py db init
    python manage.py db status
    python manage.py db clear
    python manage.py user create alice
    python manage.py snapshot [--date 2026-01-31] [--user alice]
"""

import asyncio
from datetime import date

import click
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from kadig.clients.bcb import fetch_indicators
from kadig.database import AsyncSessionLocal, Base, engine
from kadig.models import (
    Investment,
    Movement,
    Notification,
    PluggyConnection,
    Portfolio,
    PortfolioHistory,
    Profile,
    User,
)
from kadig.schemas.admin import UserCreate
from kadig.services import admin as admin_service
from kadig.services import history as history_service


# ============================================================================
# Direct database operations (internal)
# ============================================================================


async def _init_db():
    """Initialize the database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _clear_db():
    """Drop and recreate all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _count_records():
    """Count records in each table."""
    async with AsyncSessionLocal() as session:
        counts = {}
        for model, name in [
            (User, "users"),
            (Profile, "profiles"),
            (Portfolio, "portfolios"),
            (Investment, "investments"),
            (Movement, "movements"),
            (PortfolioHistory, "history"),
            (PluggyConnection, "connections"),
            (Notification, "notifications"),
        ]:
            result = await session.execute(select(func.count()).select_from(model))
            counts[name] = result.scalar_one()
        return counts


async def _create_user(user_id: str):
    async with AsyncSessionLocal() as session:
        return await admin_service.create_user(session, UserCreate(user_id=user_id))


async def _snapshot(snapshot_date: date | None, user_id: str | None):
    indicators = await fetch_indicators()
    async with AsyncSessionLocal() as session:
        return await history_service.take_snapshots(
            session, indicators, snapshot_date=snapshot_date, user_id=user_id
        )


# ============================================================================
# CLI: Main group
# ============================================================================


@click.group()
def cli():
    """Kadig management commands."""
    pass


# ============================================================================
# CLI: db
# ============================================================================


@cli.group()
def db():
    """Direct database management."""
    pass


@db.command("init")
def db_init():
    """Create any missing tables."""
    asyncio.run(_init_db())
    click.echo("Database tables created.")


@db.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear all data?")
def db_clear():
    """Clear all data from the database (destructive!)."""
    click.echo("Clearing database...")
    asyncio.run(_clear_db())
    click.echo("Database cleared and tables recreated.")


@db.command("status")
def db_status():
    """Show database status and record counts."""

    async def run():
        await _init_db()
        return await _count_records()

    counts = asyncio.run(run())

    click.echo("\nDatabase Status:")
    click.echo("-" * 30)
    for table, count in counts.items():
        click.echo(f"  {table:<15} {count:>10,}")
    click.echo("-" * 30)
    click.echo(f"  {'Total':<15} {sum(counts.values()):>10,}")


# ============================================================================
# CLI: users and snapshots
# ============================================================================


@cli.group()
def user():
    """Manage users directly in the database."""
    pass


@user.command("create")
@click.argument("user_id")
def user_create(user_id):
    """Create a user and print its API key."""

    async def run():
        await _init_db()
        return await _create_user(user_id)

    try:
        new_user, api_key = asyncio.run(run())
    except IntegrityError:
        click.echo(f"Error: user {user_id} already exists", err=True)
        raise SystemExit(1)

    click.echo(f"Created user {new_user.id}")
    click.echo(f"API key: {api_key}")


@cli.command("snapshot")
@click.option(
    "--date", "snapshot_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to record (default: today)",
)
@click.option("--user", "user_id", default=None, help="Only this user's portfolios")
def snapshot(snapshot_date, user_id):
    """Record the daily history snapshot of every portfolio."""

    async def run():
        await _init_db()
        return await _snapshot(snapshot_date.date() if snapshot_date else None, user_id)

    result = asyncio.run(run())
    click.echo(
        f"Snapshot {result.snapshot_date}: "
        f"{result.processed} processed, {result.errors} errors"
    )
    if result.errors:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
