"""CLI commands for inventory management."""

from __future__ import annotations

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import adjust_stock_handler, show_inventory_handler


@click.command("restock")
@click.option("--sku", required=True, help="Variant SKU.")
@click.option("--quantity", required=True, type=int, help="Units received.")
@click.option("--note", default=None, help="Free-text note (delivery slip, supplier).")
def inventory_restock(sku: str, quantity: int, note: str | None) -> None:
    """Receive goods into stock."""
    try:
        new_quantity = adjust_stock_handler().restock(sku, quantity, note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{sku}: +{quantity}, now {new_quantity} on hand")


@click.command("set")
@click.option("--sku", required=True, help="Variant SKU.")
@click.option("--quantity", required=True, type=int, help="Counted on-hand quantity.")
@click.option("--reason", default=None, help="Why the count changed.")
def inventory_set(sku: str, quantity: int, reason: str | None) -> None:
    """Set the on-hand quantity after a stock take."""
    try:
        new_quantity = adjust_stock_handler().set_quantity(sku, quantity, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{sku}' set to {new_quantity}")


@click.command("show")
@click.option("--low", "only_low", is_flag=True, default=False, help="Only low-stock variants.")
@click.option("--out", "only_out", is_flag=True, default=False, help="Only out-of-stock variants.")
def inventory_show(only_low: bool, only_out: bool) -> None:
    """Show current inventory levels."""
    handler = show_inventory_handler()
    if only_low:
        lines = handler.low_stock()
    elif only_out:
        lines = handler.out_of_stock()
    else:
        lines = handler.handle()

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(
        f"{'SKU':<18} {'Product':<20} {'On hand':>8} {'Reserved':>10} {'Available':>10}  Status"
    )
    click.echo("-" * 82)
    for line in lines:
        click.echo(
            f"{line.sku:<18} {line.product_name:<20} {line.on_hand:>8} "
            f"{line.reserved:>10} {line.available:>10}  {line.status}"
        )


@click.command("history")
@click.option("--sku", required=True, help="Variant SKU.")
@click.option("--limit", default=50, type=int, show_default=True, help="Most recent N movements.")
def inventory_history(sku: str, limit: int) -> None:
    """Show the stock movements of a variant, newest first."""
    try:
        movements = show_inventory_handler().history(sku, limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not movements:
        click.echo(f"No movements recorded for {sku}.")
        return

    click.echo(f"{'When':<20} {'Delta':>6} {'Type':<11} {'Reference':<24} Note")
    click.echo("-" * 80)
    for m in movements:
        reference = f"{m.reference_type}:{m.reference}" if m.reference else m.reference_type
        click.echo(
            f"{m.created_at:<20} {m.delta:>+6} {m.movement_type:<11} {reference:<24} {m.note or ''}"
        )


@click.command("value")
def inventory_value() -> None:
    """Show what the stock on hand is worth."""
    click.echo(f"Inventory value: {show_inventory_handler().value()}")


@click.command("reconcile")
@click.option("--sku", default=None, help="Check one variant (default: all).")
@click.option("--repair", is_flag=True, default=False, help="Append correcting movements.")
def inventory_reconcile(sku: str | None, repair: bool) -> None:
    """Compare on-hand quantities with the movement log."""
    try:
        discrepancies = adjust_stock_handler().reconcile(sku, repair=repair)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not discrepancies:
        click.echo("Stock ledger is consistent.")
        return

    for variant_sku, discrepancy in discrepancies.items():
        click.echo(f"{variant_sku}: on hand differs from movements by {discrepancy:+d}")
    if repair:
        click.echo(f"Repaired {len(discrepancies)} variant(s).")
