"""Application service: Settle Order use case.

Records that an order's payment has been captured and commits its stock:
the order row is locked, moved to paid, and every line is taken off the
ledger (variants locked in ascending id order) in the same unit of work.
If any part fails nothing is kept -- the order stays unpaid and no
movement is written.

Settling an order twice is a no-op: ``Order.mark_paid`` reports whether
anything changed and the ledger is only touched the first time.
"""

from __future__ import annotations

from datetime import datetime, timezone

from storefront.application.dto import OrderDTO
from storefront.application.notifications import (
    publish_stock_signals,
    send_order_confirmation,
)
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.cart import CartOwner
from storefront.domain.model.stock_movement import ReferenceType
from storefront.domain.port.notifier import OrderNotifier, StockNotifier
from storefront.domain.repository.cart_store import CartStore
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.stock_ledger import StockLedger

logger = get_logger(__name__)


class SettleOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        stock_notifier: StockNotifier | None = None,
        order_notifier: OrderNotifier | None = None,
    ) -> None:
        self._uow = uow
        self._stock_notifier = stock_notifier
        self._order_notifier = order_notifier

    def handle(
        self,
        order_number: str,
        payment_reference: str | None = None,
        cart_owner: CartOwner | None = None,
    ) -> OrderDTO:
        """Mark the order paid and decrement stock for each line.

        When *cart_owner* is given, that owner's cart is emptied as part of
        the settlement (a session cart only after the commit succeeded).
        """
        session_cart: CartStore | None = None
        with self._uow:
            order = self._uow.orders.get_by_number_for_update(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")

            settled = order.mark_paid(payment_reference, now=datetime.now(timezone.utc))
            if not settled:
                logger.info("order_already_settled", order_number=order_number)
                return OrderDTO.from_order(order)

            ledger = StockLedger(self._uow.variants, self._uow.movements)
            for item in sorted(order.items, key=lambda item: item.variant_id):
                ledger.adjust(
                    item.variant_id,
                    -item.quantity.value,
                    ReferenceType.ORDER,
                    reference=order.number,
                )

            if cart_owner is not None:
                store = self._uow.carts.store_for(cart_owner)
                if store.persistent:
                    store.clear()
                else:
                    session_cart = store

            self._uow.orders.save(order)
            self._uow.commit()
            signals = ledger.drain_signals()

        if session_cart is not None:
            session_cart.clear()

        logger.info(
            "order_settled",
            order_number=order.number,
            reference=order.payment_reference,
            items=order.item_count,
        )
        publish_stock_signals(self._stock_notifier, signals)
        send_order_confirmation(self._order_notifier, order)
        return OrderDTO.from_order(order)
