"""Application services: shipping and delivery.

Fulfillment never moves stock -- units left the ledger when the order
was settled -- so these handlers only advance the order status.
"""

from __future__ import annotations

from datetime import datetime, timezone

from storefront.application.dto import OrderDTO
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import Order
from storefront.domain.repository.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class ShipOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_number: str, tracking_number: str | None = None) -> OrderDTO:
        with self._uow:
            order = _lock_order(self._uow, order_number)
            order.mark_shipped(tracking_number, now=datetime.now(timezone.utc))
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("order_shipped", order_number=order_number, tracking_number=tracking_number)
        return OrderDTO.from_order(order)


class DeliverOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_number: str) -> OrderDTO:
        with self._uow:
            order = _lock_order(self._uow, order_number)
            order.mark_delivered(now=datetime.now(timezone.utc))
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("order_delivered", order_number=order_number)
        return OrderDTO.from_order(order)


def _lock_order(uow: UnitOfWork, order_number: str) -> Order:
    order = uow.orders.get_by_number_for_update(order_number)
    if order is None:
        raise EntityNotFoundError(f"Order {order_number} not found")
    return order
