"""Notifiers that write structured log events instead of sending mail."""

from __future__ import annotations

from storefront.config.logging import get_logger
from storefront.domain.model.order import Order
from storefront.domain.model.stock_movement import StockSignal
from storefront.domain.port.notifier import OrderNotifier, StockNotifier

logger = get_logger(__name__)


class LoggingStockNotifier(StockNotifier):

    def publish(self, signal: StockSignal) -> None:
        logger.info(
            "stock_signal",
            signal=signal.type.value,
            variant_id=signal.variant_id,
            sku=signal.sku,
            quantity=signal.quantity,
        )


class LoggingOrderNotifier(OrderNotifier):

    def order_confirmed(self, order: Order) -> None:
        logger.info(
            "order_confirmation_sent",
            order_number=order.number,
            recipient=order.customer_email,
            total=str(order.totals.total),
        )
