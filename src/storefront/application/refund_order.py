"""Application service: Refund Order use case.

Returns money, not stock: a refund leaves the ledger alone (returned
goods come back through a restock).  The amount is validated before the
gateway is called and the gateway call runs outside any transaction.
"""

from __future__ import annotations

from storefront.application.dto import OrderDTO
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.value_objects import Money
from storefront.domain.port.payment_gateway import PaymentGateway
from storefront.domain.repository.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class RefundOrderHandler:

    def __init__(self, uow: UnitOfWork, gateway: PaymentGateway) -> None:
        self._uow = uow
        self._gateway = gateway

    def handle(self, order_number: str, amount: str | None = None) -> OrderDTO:
        """Refund *amount* (a decimal string), or whatever is left when None."""
        with self._uow:
            order = self._uow.orders.get_by_number(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")
            currency = order.totals.total.currency
            requested = order.validate_refund(
                Money.of(amount, currency) if amount is not None else None
            )

        receipt = self._gateway.refund(order, requested)

        with self._uow:
            order = self._uow.orders.get_by_number_for_update(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")
            order.refund(receipt.amount)
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info(
            "order_refunded",
            order_number=order_number,
            amount=str(receipt.amount),
            reference=receipt.reference,
            payment_status=order.payment_status.value,
        )
        return OrderDTO.from_order(order)
