"""CLI commands for the catalog (products and variants)."""

from __future__ import annotations

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    add_product_handler,
    add_variant_handler,
    show_catalog_handler,
    update_product_handler,
)


@click.command("add-product")
@click.option("--sku", required=True, help="Product SKU.")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price incl. VAT (e.g. 49.90).")
@click.option("--sale-price", default=None, help="Optional sale price.")
@click.option("--cost-price", default=None, help="Purchase cost per unit, used for stock valuation.")
def catalog_add_product(
    sku: str, name: str, price: str, sale_price: str | None, cost_price: str | None
) -> None:
    """Add a new product to the catalog."""
    try:
        product = add_product_handler().handle(
            sku=sku, name=name, price=price, sale_price=sale_price, cost_price=cost_price
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.sku} '{product.name}' added at {product.current_price}")


@click.command("add-variant")
@click.option("--product", "product_sku", required=True, help="Product SKU.")
@click.option("--size", required=True, help="Size label (e.g. M, 38).")
@click.option("--color", default=None, help="Color name.")
@click.option("--stock", default=0, type=int, show_default=True, help="Opening stock.")
@click.option("--threshold", default=5, type=int, show_default=True, help="Low-stock threshold.")
@click.option("--sku", default=None, help="Variant SKU (generated when omitted).")
def catalog_add_variant(
    product_sku: str,
    size: str,
    color: str | None,
    stock: int,
    threshold: int,
    sku: str | None,
) -> None:
    """Add a purchasable variant (color x size) to a product."""
    try:
        variant = add_variant_handler().handle(
            product_sku=product_sku,
            size=size,
            color=color,
            initial_stock=stock,
            low_stock_threshold=threshold,
            sku=sku,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Variant {variant.sku} added (#{variant.id}, stock={variant.stock_quantity})")


@click.command("list")
def catalog_list() -> None:
    """List all products in the catalog."""
    products = show_catalog_handler().handle()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'SKU':<12} {'Name':<24} {'Price':>10} {'Active':>7}  Variants")
    click.echo("-" * 72)
    for p in products:
        price = f"{p.price}*" if p.on_sale else p.price
        click.echo(
            f"{p.sku:<12} {p.name:<24} {price:>10} {'yes' if p.active else 'no':>7}  "
            f"{', '.join(p.variants)}"
        )


@click.command("update")
@click.option("--sku", required=True, help="Product SKU.")
@click.option("--price", default=None, help="New regular price.")
@click.option("--sale-price", default=None, help="New sale price.")
@click.option("--clear-sale", is_flag=True, default=False, help="End the sale.")
@click.option("--active/--inactive", default=None, help="Show or hide the product.")
@click.option("--cost-price", default=None, help="New purchase cost per unit.")
def catalog_update(
    sku: str,
    price: str | None,
    sale_price: str | None,
    clear_sale: bool,
    active: bool | None,
    cost_price: str | None,
) -> None:
    """Update a product's price or visibility."""
    try:
        product = update_product_handler().handle(
            sku=sku,
            price=price,
            sale_price=sale_price,
            clear_sale=clear_sale,
            active=active,
            cost_price=cost_price,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    state = "active" if product.is_active else "inactive"
    click.echo(f"Product {product.sku} now {product.current_price} ({state})")
