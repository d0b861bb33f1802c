"""CLI commands for the database schema."""

from __future__ import annotations

import click

from storefront.infrastructure.bootstrap import engine
from storefront.infrastructure.persistence.database import drop_db, init_db


@click.command("init")
def db_init() -> None:
    """Create all tables (existing tables are left alone)."""
    init_db(engine())
    click.echo("Database initialized.")


@click.command("reset")
@click.confirmation_option(prompt="Drop every table and all data?")
def db_reset() -> None:
    """Drop and recreate all tables."""
    drop_db(engine())
    init_db(engine())
    click.echo("Database reset.")
