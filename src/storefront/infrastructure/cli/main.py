import click

from storefront.config.logging import configure_logging
from storefront.config.settings import get_settings
from storefront.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_merge,
    cart_purge,
    cart_remove,
    cart_show,
    cart_summary,
    cart_update,
)
from storefront.infrastructure.cli.catalog_commands import (
    catalog_add_product,
    catalog_add_variant,
    catalog_list,
    catalog_update,
)
from storefront.infrastructure.cli.db_commands import db_init, db_reset
from storefront.infrastructure.cli.inventory_commands import (
    inventory_history,
    inventory_reconcile,
    inventory_restock,
    inventory_set,
    inventory_show,
    inventory_value,
)
from storefront.infrastructure.cli.order_commands import (
    order_anonymize,
    order_cancel,
    order_confirm,
    order_deliver,
    order_expire,
    order_mark_paid,
    order_pay,
    order_place,
    order_refund,
    order_ship,
    order_show,
)
from storefront.infrastructure.cli.shipping_commands import shipping_add, shipping_list


@click.group()
@click.version_option(get_settings().app_version, prog_name="storefront")
def cli() -> None:
    """Storefront: stock reservation and order settlement"""
    configure_logging()


@cli.group()
def db() -> None:
    """Manage the database schema."""


@cli.group()
def catalog() -> None:
    """Manage products and variants."""


@cli.group()
def shipping() -> None:
    """Manage shipping methods."""


@cli.group()
def inventory() -> None:
    """Manage stock."""


@cli.group()
def cart() -> None:
    """Manage shopping carts."""


@cli.group()
def order() -> None:
    """Manage orders."""


# Register subcommands
db.add_command(db_init)
db.add_command(db_reset)
catalog.add_command(catalog_add_product)
catalog.add_command(catalog_add_variant)
catalog.add_command(catalog_list)
catalog.add_command(catalog_update)
shipping.add_command(shipping_add)
shipping.add_command(shipping_list)
inventory.add_command(inventory_history)
inventory.add_command(inventory_reconcile)
inventory.add_command(inventory_restock)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
inventory.add_command(inventory_value)
cart.add_command(cart_add)
cart.add_command(cart_clear)
cart.add_command(cart_merge)
cart.add_command(cart_purge)
cart.add_command(cart_remove)
cart.add_command(cart_show)
cart.add_command(cart_summary)
cart.add_command(cart_update)
order.add_command(order_anonymize)
order.add_command(order_cancel)
order.add_command(order_confirm)
order.add_command(order_deliver)
order.add_command(order_expire)
order.add_command(order_mark_paid)
order.add_command(order_pay)
order.add_command(order_place)
order.add_command(order_refund)
order.add_command(order_ship)
order.add_command(order_show)
