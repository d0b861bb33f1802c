"""Post-commit publishing of side-channel notifications.

Notifications never take part in the transaction that caused them: they
run after commit, and a failing notifier is logged, not raised.
"""

from __future__ import annotations

from collections.abc import Iterable

from storefront.config.logging import get_logger
from storefront.domain.model.order import Order
from storefront.domain.model.stock_movement import StockSignal
from storefront.domain.port.notifier import OrderNotifier, StockNotifier

logger = get_logger(__name__)


def publish_stock_signals(notifier: StockNotifier | None, signals: Iterable[StockSignal]) -> None:
    if notifier is None:
        return
    for signal in signals:
        try:
            notifier.publish(signal)
        except Exception:
            logger.exception(
                "stock_signal_delivery_failed",
                signal=signal.type.value,
                variant_id=signal.variant_id,
            )


def send_order_confirmation(notifier: OrderNotifier | None, order: Order) -> None:
    if notifier is None:
        return
    try:
        notifier.order_confirmed(order)
    except Exception:
        logger.exception("order_confirmation_failed", order_number=order.number)
