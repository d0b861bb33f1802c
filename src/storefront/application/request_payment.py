"""Application service: Request Payment use case.

Opens a gateway payment for a pending order -- right after checkout, or
again after an earlier attempt failed.  The gateway call runs between
two short transactions so no row lock is held across the network call.
Stock is not touched: the order keeps its hold while it stays pending.
"""

from __future__ import annotations

from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError, PaymentError
from storefront.domain.model.order import Order
from storefront.domain.port.payment_gateway import PaymentGateway, PaymentIntent
from storefront.domain.repository.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class RequestPaymentHandler:

    def __init__(self, uow: UnitOfWork, gateway: PaymentGateway) -> None:
        self._uow = uow
        self._gateway = gateway

    def handle(self, order_number: str) -> PaymentIntent:
        with self._uow:
            order = self._uow.orders.get_by_number(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")
            order.ensure_payment_can_be_requested()

        try:
            intent = self._gateway.create_intent(order)
        except PaymentError:
            self._record_failure(order_number)
            raise

        with self._uow:
            order = self._lock(order_number)
            order.await_payment(intent.reference)
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("payment_requested", order_number=order_number, reference=intent.reference)
        return intent

    def _record_failure(self, order_number: str) -> None:
        with self._uow:
            order = self._lock(order_number)
            order.mark_payment_failed()
            self._uow.orders.save(order)
            self._uow.commit()
        logger.warning("payment_request_failed", order_number=order_number)

    def _lock(self, order_number: str) -> Order:
        order = self._uow.orders.get_by_number_for_update(order_number)
        if order is None:
            raise EntityNotFoundError(f"Order {order_number} not found")
        return order
