#!/usr/bin/env python3
"""
Management script for the investment ledger.

Usage (via API):
    python manage.py portfolio summary [--api-key KEY] [--base-url http://localhost:8000]
    python manage.py portfolio allocation [--api-key KEY] [--base-url http://localhost:8000]

Usage (direct DB access):
    python manage.py db init
    python manage.py db clear
    python manage.py db status
    python manage.py db users create alice
    python manage.py db users show
    python manage.py db audit alice [--fix]

Client configuration:
    python manage.py config show
    python manage.py config set api_key lk_...
"""

import asyncio

import click
import httpx
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ledger import cli_config as cfg
from ledger.database import AsyncSessionLocal, Base, engine
from ledger.models import Holding, Transaction, User
from ledger.schemas.admin import UserCreate
from ledger.services import admin as admin_service
from ledger.services import audit as audit_service
from ledger.services import holdings as holdings_service


DEFAULT_BASE_URL = "http://localhost:8000"


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
            (Holding, "holdings"),
            (Transaction, "transactions"),
        ]:
            result = await session.execute(select(func.count()).select_from(model))
            counts[name] = result.scalar_one()
        return counts


async def _db_create_user(user_id: str):
    async with AsyncSessionLocal() as session:
        return await admin_service.create_user(session, UserCreate(user_id=user_id))


async def _db_show_users():
    async with AsyncSessionLocal() as session:
        return await admin_service.list_users(session)


async def _db_audit(user_id: str, fix: bool):
    """Audit (and optionally reconcile) every holding of a user."""
    async with AsyncSessionLocal() as session:
        holdings = await holdings_service.list_all_holdings(session, user_id)
        reports = []
        for holding in holdings:
            if fix:
                audit = await audit_service.reconcile_holding(session, holding.id, user_id)
            else:
                audit = await audit_service.audit_holding(session, holding.id, user_id)
            reports.append((holding, audit))
        return reports


# ============================================================================
# API operations
# ============================================================================


def _resolve_client_options(api_key: str | None, base_url: str | None) -> tuple[str, str]:
    """Fill missing options from the CLI config file."""
    config = cfg.load_config()
    base_url = base_url or config.get("base_url") or DEFAULT_BASE_URL
    api_key = api_key or config.get("api_key")
    if not api_key:
        raise click.ClickException(
            "No API key. Pass --api-key or run: python manage.py config set api_key <key>"
        )
    return api_key, base_url


def _api_get(path: str, api_key: str, base_url: str) -> dict:
    headers = {"Authorization": f"Bearer {api_key}"}
    with httpx.Client(base_url=base_url, timeout=30, headers=headers) as client:
        response = client.get(path)
        if response.status_code == 401:
            raise click.ClickException("API key rejected by server")
        if response.status_code == 404:
            raise click.ClickException(
                f"Endpoint not found. Is the Investment Ledger API running at {base_url}?"
            )
        response.raise_for_status()
        return response.json()


def _connect_error(base_url: str):
    click.echo(f"\nError: Could not connect to {base_url}", err=True)
    click.echo("Is the server running? Start it with: uvicorn ledger.main:app", err=True)
    raise SystemExit(1)


# ============================================================================
# CLI: Main group
# ============================================================================


@click.group()
def cli():
    """Investment ledger management commands."""
    pass


# ============================================================================
# CLI: portfolio (via API)
# ============================================================================


api_key_option = click.option(
    "--api-key", "-k",
    envvar="LEDGER_API_KEY",
    default=None,
    help="Bearer key (default: from config)",
)
base_url_option = click.option(
    "--base-url", "-u",
    default=None,
    help=f"API base URL (default: from config, else {DEFAULT_BASE_URL})",
)


@cli.group()
def portfolio():
    """Query portfolio analytics (via API)."""
    pass


@portfolio.command("summary")
@api_key_option
@base_url_option
def portfolio_summary(api_key, base_url):
    """Show portfolio totals."""
    api_key, base_url = _resolve_client_options(api_key, base_url)
    try:
        summary = _api_get("/api/v1/investments/portfolio/summary", api_key, base_url)
    except httpx.ConnectError:
        _connect_error(base_url)

    click.echo("\nPortfolio Summary:")
    click.echo("-" * 40)
    click.echo(f"  {'Holdings':<22} {summary['number_of_holdings']:>15}")
    click.echo(f"  {'Total value':<22} {summary['total_value']:>15}")
    click.echo(f"  {'Total invested':<22} {summary['total_invested']:>15}")
    click.echo(f"  {'Gain/loss':<22} {summary['total_gain_loss']:>15}")
    click.echo(f"  {'Return %':<22} {summary['total_return_percent']:>15}")


@portfolio.command("allocation")
@api_key_option
@base_url_option
def portfolio_allocation(api_key, base_url):
    """Show portfolio value by asset class."""
    api_key, base_url = _resolve_client_options(api_key, base_url)
    try:
        data = _api_get("/api/v1/investments/portfolio/allocation", api_key, base_url)
    except httpx.ConnectError:
        _connect_error(base_url)

    allocations = data["allocations"]
    if not allocations:
        click.echo("No holdings found.")
        return

    click.echo(f"\n{'Asset class':<14} {'Amount':>15} {'Percent':>9}")
    click.echo("-" * 40)
    for a in allocations:
        click.echo(f"{a['asset_class']:<14} {a['amount']:>15} {a['percentage']:>8}%")


# ============================================================================
# CLI: config (client settings file)
# ============================================================================


@cli.group("config")
def config_group():
    """Manage CLI client configuration."""
    pass


@config_group.command("show")
def config_show():
    """Show the current client configuration."""
    config_path = cfg.find_config()
    if config_path is None:
        click.echo("No configuration file found.")
        return

    click.echo(f"Config file: {config_path}")
    for key, value in cfg.load_config(config_path).items():
        click.echo(f"  {key}: {value}")


@config_group.command("set")
@click.argument("key", type=click.Choice(sorted(cfg.VALID_KEYS)))
@click.argument("value")
def config_set(key, value):
    """Set a client configuration value."""
    config_path = cfg.find_config()
    config = cfg.load_config(config_path) if config_path else cfg.get_default_config()
    config[key] = value
    save_path = cfg.save_config(config, config_path)
    click.echo(f"Set {key} (saved to {save_path})")


# ============================================================================
# CLI: db (direct database access)
# ============================================================================


@cli.group()
def db():
    """Direct database management (bypasses API)."""
    pass


@db.command("init")
def db_init():
    """Create tables if they don't exist."""
    asyncio.run(_init_db())
    click.echo("Database initialized.")


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


@db.command("audit")
@click.argument("user_id")
@click.option("--fix", is_flag=True, help="Rewrite drifted holdings from their ledger")
def db_audit(user_id, fix):
    """Compare each holding of USER_ID with its transaction ledger."""

    async def run():
        await _init_db()
        return await _db_audit(user_id, fix)

    reports = asyncio.run(run())
    if not reports:
        click.echo(f"No holdings found for '{user_id}'.")
        return

    drifted = 0
    click.echo(f"\n{'Holding':<24} {'Txs':>4} {'Cached shares':>16} {'Ledger shares':>16}  Status")
    click.echo("-" * 80)
    for holding, audit in reports:
        if audit.in_sync:
            state = "ok"
        else:
            drifted += 1
            state = audit.replay_error or ("fixed" if fix else "DRIFT")
        replayed = "-" if audit.replayed_shares is None else f"{audit.replayed_shares:f}"
        click.echo(
            f"{holding.name[:24]:<24} {audit.transaction_count:>4} "
            f"{audit.cached_shares:>16f} {replayed:>16}  {state}"
        )
    click.echo(f"\n{len(reports)} holdings, {drifted} out of sync")


# ============================================================================
# CLI: db users
# ============================================================================


@db.group("users")
def db_users():
    """Manage users directly in database."""
    pass


@db_users.command("create")
@click.argument("user_id")
def db_users_create(user_id):
    """Create USER_ID and print its API key."""

    async def run():
        await _init_db()
        return await _db_create_user(user_id)

    try:
        user, api_key = asyncio.run(run())
    except IntegrityError:
        raise click.ClickException(f"User with ID '{user_id}' already exists")

    click.echo(f"Created user {user.id}")
    click.echo(f"API key: {api_key}")
    click.echo("Store the key securely - it cannot be retrieved later.")


@db_users.command("show")
def db_users_show():
    """Show all users."""

    async def run():
        await _init_db()
        return await _db_show_users()

    users = asyncio.run(run())
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"\n{'User':<30} {'Created':<20}")
    click.echo("-" * 52)
    for u in users:
        click.echo(f"{u.id:<30} {u.created_at:%Y-%m-%d %H:%M:%S}")
    click.echo(f"\nTotal: {len(users)} users")


if __name__ == "__main__":
    cli()
