"""CLI commands for shipping methods."""

from __future__ import annotations

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    add_shipping_method_handler,
    list_shipping_methods_handler,
)


@click.command("add")
@click.option("--code", required=True, help="Short code (e.g. standard).")
@click.option("--name", required=True, help="Display name.")
@click.option("--cost", required=True, help="Base cost (e.g. 4.95).")
@click.option("--free-over", default=None, help="Free shipping from this subtotal.")
def shipping_add(code: str, name: str, cost: str, free_over: str | None) -> None:
    """Add a shipping method."""
    try:
        method = add_shipping_method_handler().handle(
            code=code, name=name, base_cost=cost, free_shipping_threshold=free_over
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Shipping method #{method.id} '{method.code}' added at {method.base_cost}")


@click.command("list")
def shipping_list() -> None:
    """List active shipping methods."""
    methods = list_shipping_methods_handler().handle()

    if not methods:
        click.echo("No shipping methods found.")
        return

    click.echo(f"{'ID':<4} {'Code':<12} {'Name':<24} {'Cost':>10} {'Free over':>10}")
    click.echo("-" * 64)
    for m in methods:
        threshold = str(m.free_shipping_threshold) if m.free_shipping_threshold else "-"
        click.echo(f"{m.id:<4} {m.code:<12} {m.name:<24} {str(m.base_cost):>10} {threshold:>10}")
