"""CLI commands for the Order aggregate."""

from __future__ import annotations

from pathlib import Path

import click

from storefront.application.dto import AddressSpec, CheckoutRequest, OrderDTO
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    anonymize_customer_handler,
    cancel_order_handler,
    confirm_payment_handler,
    deliver_order_handler,
    expire_orders_handler,
    place_order_handler,
    refund_order_handler,
    request_payment_handler,
    settle_order_handler,
    ship_order_handler,
    show_order_handler,
)
from storefront.infrastructure.cli.cart_commands import owner_options
from storefront.infrastructure.cli.session_file import cart_owner


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"Customer: {dto.customer_email or '-'}")
    click.echo(f"Payment:  {dto.payment_method}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.tracking_number:
        click.echo(f"Tracking: {dto.tracking_number}")
    if dto.cancellation_reason:
        click.echo(f"Cancelled: {dto.cancellation_reason}")
    click.echo()

    click.echo(f"  {'SKU':<18} {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*67}")
    for item in dto.items:
        click.echo(
            f"  {item.sku:<18} {item.product_name:<20} {item.quantity:>5} "
            f"{item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*67}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>40}")
    click.echo(f"  {'Shipping':<27} {dto.shipping:>40}")
    click.echo(f"  {'Order Total':<27} {dto.total:>40}")
    click.echo(f"  {'incl. VAT':<27} {dto.tax:>40}")
    if dto.refunded:
        click.echo(f"  {'Refunded':<27} {dto.refunded:>40}")


@click.command("place")
@owner_options
@click.option("--email", required=True, help="Customer e-mail.")
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
@click.option("--street", required=True, help="Street and house number.")
@click.option("--postal-code", required=True)
@click.option("--city", required=True)
@click.option("--phone", required=True)
@click.option("--country", default="DE", show_default=True)
@click.option("--shipping", "shipping_method_id", required=True, type=int, help="Shipping method ID.")
@click.option(
    "--payment",
    "payment_method",
    type=click.Choice(["card", "paypal", "invoice"]),
    default="card",
    show_default=True,
)
@click.option("--notes", default=None, help="Customer notes.")
def order_place(
    user_id: int | None,
    session_path: Path | None,
    email: str,
    first_name: str,
    last_name: str,
    street: str,
    postal_code: str,
    city: str,
    phone: str,
    country: str,
    shipping_method_id: int,
    payment_method: str,
    notes: str | None,
) -> None:
    """Check out the cart (shipping address = billing address)."""
    request = CheckoutRequest(
        email=email,
        billing=AddressSpec(
            first_name=first_name,
            last_name=last_name,
            street_address=street,
            postal_code=postal_code,
            city=city,
            phone=phone,
            country=country,
        ),
        shipping_method_id=shipping_method_id,
        payment_method=payment_method,
        customer_notes=notes,
    )

    with cart_owner(user_id, session_path) as owner:
        try:
            result = place_order_handler().handle(owner, request)
        except DomainException as exc:
            raise click.ClickException(str(exc))

    _display_order(result.order)
    if result.awaiting_payment:
        click.echo()
        click.echo(f"Awaiting payment, reference {result.payment_reference}")


@click.command("show")
@click.argument("number")
def order_show(number: str) -> None:
    """Show details of an existing order."""
    try:
        dto = show_order_handler().handle(number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("pay")
@click.argument("number")
def order_pay(number: str) -> None:
    """Open a new gateway payment (e.g. after a failed attempt)."""
    try:
        intent = request_payment_handler().handle(number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {number} awaiting payment, reference {intent.reference}")


@click.command("confirm")
@click.argument("number", required=False)
@click.option("--reference", default=None, help="Gateway payment reference.")
@owner_options
def order_confirm(
    number: str | None, reference: str | None, user_id: int | None, session_path: Path | None
) -> None:
    """Confirm the gateway payment and settle the order.

    Without NUMBER the order is looked up by --reference, as a gateway
    callback would do.
    """
    if number is None and reference is None:
        raise click.UsageError("Give an order NUMBER or a --reference.")

    def confirm(owner=None) -> OrderDTO:
        handler = confirm_payment_handler()
        if number is None:
            return handler.handle_reference(reference, cart_owner=owner)
        return handler.handle(number, payment_reference=reference, cart_owner=owner)

    try:
        if user_id is None and session_path is None:
            dto = confirm()
        else:
            with cart_owner(user_id, session_path) as owner:
                dto = confirm(owner)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.number} paid, stock committed.")


@click.command("mark-paid")
@click.argument("number")
@click.option("--reference", default=None, help="Payment reference (bank transfer, etc.).")
def order_mark_paid(number: str, reference: str | None) -> None:
    """Record a payment received outside the gateway (e.g. an invoice)."""
    try:
        dto = settle_order_handler().handle(number, payment_reference=reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.number} marked paid (status={dto.status}).")


@click.command("cancel")
@click.argument("number")
@click.option("--reason", default=None, help="Cancellation reason.")
def order_cancel(number: str, reason: str | None) -> None:
    """Cancel an order (restores stock if it was already taken)."""
    try:
        handler = cancel_order_handler()
        handler.handle(number, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {number} cancelled.")


@click.command("ship")
@click.argument("number")
@click.option("--tracking", default=None, help="Carrier tracking number.")
def order_ship(number: str, tracking: str | None) -> None:
    """Mark an order as shipped."""
    try:
        ship_order_handler().handle(number, tracking_number=tracking)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {number} shipped.")


@click.command("deliver")
@click.argument("number")
def order_deliver(number: str) -> None:
    """Mark an order as delivered."""
    try:
        deliver_order_handler().handle(number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {number} delivered.")


@click.command("refund")
@click.argument("number")
@click.option("--amount", default=None, help="Partial amount (default: everything left).")
def order_refund(number: str, amount: str | None) -> None:
    """Refund an order fully or partially."""
    try:
        dto = refund_order_handler().handle(number, amount=amount)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {number} refunded {dto.refunded} (payment={dto.payment_status}).")


@click.command("expire")
def order_expire() -> None:
    """Cancel pending orders whose payment never arrived."""
    expired = expire_orders_handler().handle()
    if not expired:
        click.echo("No expired orders.")
        return
    for number in expired:
        click.echo(f"Order {number} expired.")


@click.command("anonymize")
@click.option("--user", "user_id", type=int, default=None, help="Registered user ID.")
@click.option("--email", default=None, help="Guest e-mail.")
def order_anonymize(user_id: int | None, email: str | None) -> None:
    """Erase a customer's personal data from their orders."""
    try:
        count = anonymize_customer_handler().handle(user_id=user_id, email=email)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Anonymized {count} order(s).")
