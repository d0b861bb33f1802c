"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from storefront.application.add_product import AddProductHandler, AddVariantHandler
from storefront.application.add_shipping_method import (
    AddShippingMethodHandler,
    ListShippingMethodsHandler,
)
from storefront.application.adjust_stock import AdjustStockHandler
from storefront.application.anonymize_customer import AnonymizeCustomerHandler
from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.checkout_summary import CheckoutSummaryHandler
from storefront.application.confirm_payment import ConfirmPaymentHandler
from storefront.application.expire_orders import ExpirePendingOrdersHandler
from storefront.application.fulfill_order import DeliverOrderHandler, ShipOrderHandler
from storefront.application.manage_cart import CartService
from storefront.application.place_order import PlaceOrderHandler
from storefront.application.refund_order import RefundOrderHandler
from storefront.application.request_payment import RequestPaymentHandler
from storefront.application.settle_order import SettleOrderHandler
from storefront.application.show_catalog import ShowCatalogHandler
from storefront.application.show_inventory import ShowInventoryHandler
from storefront.application.show_order import ShowOrderHandler
from storefront.application.update_product import UpdateProductHandler
from storefront.config.settings import get_settings
from storefront.domain.port.payment_gateway import PaymentGateway
from storefront.infrastructure.notifications.log_notifier import (
    LoggingOrderNotifier,
    LoggingStockNotifier,
)
from storefront.infrastructure.payment.manual_gateway import ManualPaymentGateway
from storefront.infrastructure.persistence.database import (
    create_db_engine,
    make_session_factory,
)
from storefront.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork


@lru_cache(maxsize=1)
def engine() -> Engine:
    return create_db_engine(get_settings().database)


@lru_cache(maxsize=1)
def session_factory() -> sessionmaker:
    return make_session_factory(engine())


@lru_cache(maxsize=1)
def payment_gateway() -> PaymentGateway:
    return ManualPaymentGateway()


def reset() -> None:
    """Forget cached engine and gateway (settings changed, tests)."""
    if engine.cache_info().currsize:
        engine().dispose()
    engine.cache_clear()
    session_factory.cache_clear()
    payment_gateway.cache_clear()


def unit_of_work() -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory())


# --- Catalog ---------------------------------------------------------------------


def add_product_handler() -> AddProductHandler:
    return AddProductHandler(unit_of_work(), currency=get_settings().commerce.currency)


def add_variant_handler() -> AddVariantHandler:
    return AddVariantHandler(unit_of_work(), LoggingStockNotifier())


def show_catalog_handler() -> ShowCatalogHandler:
    return ShowCatalogHandler(unit_of_work())


def update_product_handler() -> UpdateProductHandler:
    return UpdateProductHandler(unit_of_work())


def add_shipping_method_handler() -> AddShippingMethodHandler:
    return AddShippingMethodHandler(unit_of_work(), currency=get_settings().commerce.currency)


def list_shipping_methods_handler() -> ListShippingMethodsHandler:
    return ListShippingMethodsHandler(unit_of_work())


# --- Inventory -------------------------------------------------------------------


def adjust_stock_handler() -> AdjustStockHandler:
    return AdjustStockHandler(unit_of_work(), LoggingStockNotifier())


def show_inventory_handler() -> ShowInventoryHandler:
    return ShowInventoryHandler(unit_of_work(), currency=get_settings().commerce.currency)


# --- Cart & checkout -------------------------------------------------------------


def cart_service() -> CartService:
    commerce = get_settings().commerce
    return CartService(
        unit_of_work(),
        max_line_quantity=commerce.max_line_quantity,
        retention=commerce.cart_retention,
        currency=commerce.currency,
    )


def checkout_summary_handler() -> CheckoutSummaryHandler:
    commerce = get_settings().commerce
    return CheckoutSummaryHandler(
        unit_of_work(),
        vat_rate=commerce.vat_rate,
        currency=commerce.currency,
        max_line_quantity=commerce.max_line_quantity,
    )


def place_order_handler() -> PlaceOrderHandler:
    commerce = get_settings().commerce
    return PlaceOrderHandler(
        unit_of_work(),
        payment_gateway(),
        LoggingOrderNotifier(),
        order_prefix=commerce.order_prefix,
        vat_rate=commerce.vat_rate,
        currency=commerce.currency,
        max_line_quantity=commerce.max_line_quantity,
        max_attempts=commerce.order_number_retries,
    )


# --- Orders ----------------------------------------------------------------------


def show_order_handler() -> ShowOrderHandler:
    return ShowOrderHandler(unit_of_work())


def request_payment_handler() -> RequestPaymentHandler:
    return RequestPaymentHandler(unit_of_work(), payment_gateway())


def confirm_payment_handler() -> ConfirmPaymentHandler:
    return ConfirmPaymentHandler(
        unit_of_work(), payment_gateway(), LoggingStockNotifier(), LoggingOrderNotifier()
    )


def settle_order_handler() -> SettleOrderHandler:
    return SettleOrderHandler(unit_of_work(), LoggingStockNotifier(), LoggingOrderNotifier())


def cancel_order_handler() -> CancelOrderHandler:
    return CancelOrderHandler(unit_of_work(), LoggingStockNotifier())


def ship_order_handler() -> ShipOrderHandler:
    return ShipOrderHandler(unit_of_work())


def deliver_order_handler() -> DeliverOrderHandler:
    return DeliverOrderHandler(unit_of_work())


def refund_order_handler() -> RefundOrderHandler:
    return RefundOrderHandler(unit_of_work(), payment_gateway())


def expire_orders_handler() -> ExpirePendingOrdersHandler:
    return ExpirePendingOrdersHandler(
        unit_of_work(), timeout=get_settings().commerce.pending_order_timeout
    )


def anonymize_customer_handler() -> AnonymizeCustomerHandler:
    return AnonymizeCustomerHandler(unit_of_work())
