"""Application service: Cancel Order use case.

Pending orders only held stock implicitly (through the reservation
projection), so cancelling them releases the hold without touching the
ledger.  Orders whose stock was already taken at settlement get every
line put back with an ``order_cancelled`` movement, in the same unit of
work as the status change.
"""

from __future__ import annotations

from datetime import datetime, timezone

from storefront.application.dto import OrderDTO
from storefront.application.notifications import publish_stock_signals
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import Order
from storefront.domain.model.stock_movement import ReferenceType
from storefront.domain.port.notifier import StockNotifier
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.stock_ledger import StockLedger

logger = get_logger(__name__)


class CancelOrderHandler:

    def __init__(self, uow: UnitOfWork, stock_notifier: StockNotifier | None = None) -> None:
        self._uow = uow
        self._stock_notifier = stock_notifier

    def handle(
        self,
        order_number: str,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_number_for_update(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")

            ledger = StockLedger(self._uow.variants, self._uow.movements)
            restored = cancel_with_restock(order, ledger, reason, now)

            self._uow.orders.save(order)
            self._uow.commit()
            signals = ledger.drain_signals()

        logger.info(
            "order_cancelled",
            order_number=order.number,
            reason=reason,
            stock_restored=restored,
        )
        publish_stock_signals(self._stock_notifier, signals)
        return OrderDTO.from_order(order)


def cancel_with_restock(
    order: Order,
    ledger: StockLedger,
    reason: str | None = None,
    now: datetime | None = None,
) -> bool:
    """Cancel *order*; put its lines back on the ledger if they were taken off.

    Must run inside the caller's unit of work.  Returns whether stock moved.
    """
    restore = order.cancel(reason, now=now or datetime.now(timezone.utc))
    if restore:
        for item in sorted(order.items, key=lambda item: item.variant_id):
            ledger.adjust(
                item.variant_id,
                item.quantity.value,
                ReferenceType.ORDER_CANCELLED,
                reference=order.number,
            )
    return restore
