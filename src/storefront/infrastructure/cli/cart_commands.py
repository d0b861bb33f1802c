"""CLI commands for shopping carts.

Every command acts on a registered user's cart (``--user``) or on an
anonymous cart kept in a session file (``--session``).
"""

from __future__ import annotations

from pathlib import Path

import click

from storefront.application.dto import CartDTO
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import cart_service, checkout_summary_handler
from storefront.infrastructure.cli.session_file import cart_owner, session_from_file


def owner_options(func):
    func = click.option(
        "--session",
        "session_path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Session file of an anonymous visitor.",
    )(func)
    func = click.option("--user", "user_id", type=int, default=None, help="Registered user ID.")(func)
    return func


def _display_cart(dto: CartDTO) -> None:
    if not dto.lines:
        click.echo("Cart is empty.")
        return

    click.echo(f"  {'Variant':<18} {'Product':<20} {'Qty':>4} {'Max':>4} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*71}")
    for line in dto.lines:
        flag = "" if line.is_available else "  (unavailable)"
        click.echo(
            f"  {line.sku:<18} {line.product_name:<20} {line.quantity:>4} "
            f"{line.max_quantity:>4} {line.unit_price:>10} {line.line_total:>10}{flag}"
        )
    click.echo(f"  {'-'*71}")
    click.echo(f"  {'Subtotal':<22} {dto.item_count:>4} items {dto.subtotal:>37}")


@click.command("add")
@owner_options
@click.option("--variant", "variant_id", required=True, type=int, help="Variant ID.")
@click.option("--quantity", default=1, type=int, show_default=True, help="Units to add.")
def cart_add(user_id: int | None, session_path: Path | None, variant_id: int, quantity: int) -> None:
    """Add a variant to the cart."""
    with cart_owner(user_id, session_path) as owner:
        try:
            dto = cart_service().add_item(owner, variant_id, quantity)
        except DomainException as exc:
            raise click.ClickException(str(exc))
    _display_cart(dto)


@click.command("update")
@owner_options
@click.option("--variant", "variant_id", required=True, type=int, help="Variant ID.")
@click.option("--quantity", required=True, type=int, help="New quantity (0 removes).")
def cart_update(
    user_id: int | None, session_path: Path | None, variant_id: int, quantity: int
) -> None:
    """Change the quantity of a cart line."""
    with cart_owner(user_id, session_path) as owner:
        try:
            dto = cart_service().update_quantity(owner, variant_id, quantity)
        except DomainException as exc:
            raise click.ClickException(str(exc))
    _display_cart(dto)


@click.command("remove")
@owner_options
@click.option("--variant", "variant_id", required=True, type=int, help="Variant ID.")
def cart_remove(user_id: int | None, session_path: Path | None, variant_id: int) -> None:
    """Remove a line from the cart."""
    with cart_owner(user_id, session_path) as owner:
        dto = cart_service().remove_item(owner, variant_id)
    _display_cart(dto)


@click.command("clear")
@owner_options
def cart_clear(user_id: int | None, session_path: Path | None) -> None:
    """Empty the cart."""
    with cart_owner(user_id, session_path) as owner:
        cart_service().clear(owner)
    click.echo("Cart cleared.")


@click.command("show")
@owner_options
def cart_show(user_id: int | None, session_path: Path | None) -> None:
    """Show the cart at current prices."""
    with cart_owner(user_id, session_path) as owner:
        dto = cart_service().list_items(owner)
    _display_cart(dto)


@click.command("summary")
@owner_options
@click.option("--shipping", "shipping_method_id", required=True, type=int, help="Shipping method ID.")
def cart_summary(user_id: int | None, session_path: Path | None, shipping_method_id: int) -> None:
    """Preview checkout totals for the cart."""
    with cart_owner(user_id, session_path) as owner:
        try:
            summary = checkout_summary_handler().handle(owner, shipping_method_id)
        except DomainException as exc:
            raise click.ClickException(str(exc))

    _display_cart(summary.cart)
    shipping = "free" if summary.free_shipping else summary.shipping
    click.echo(f"  {'Shipping':<27} {shipping:>44}")
    click.echo(f"  {'Total':<27} {summary.total:>44}")
    click.echo(f"  {'incl. VAT':<27} {summary.tax:>44}")


@click.command("merge")
@click.option(
    "--session",
    "session_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Session file of the visitor who just logged in.",
)
@click.option("--user", "user_id", required=True, type=int, help="User who logged in.")
def cart_merge(session_path: Path, user_id: int) -> None:
    """Fold an anonymous session cart into a user's cart (on login)."""
    with session_from_file(session_path) as session:
        dto = cart_service().merge_on_login(session, user_id)
    _display_cart(dto)


@click.command("purge")
@owner_options
def cart_purge(user_id: int | None, session_path: Path | None) -> None:
    """Drop cart lines older than the retention window."""
    with cart_owner(user_id, session_path) as owner:
        removed = cart_service().purge_stale(owner)
    click.echo(f"Removed {removed} stale cart line(s).")
