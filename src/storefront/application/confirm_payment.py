"""Application service: Confirm Payment use case.

Called when the customer returns from the payment page (or the gateway
calls back).  The gateway is asked for the outcome outside any
transaction; a successful capture is handed to ``SettleOrderHandler``.

Gateway callbacks only carry the payment reference, so ``handle_reference``
resolves the order from it first.
"""

from __future__ import annotations

from storefront.application.dto import OrderDTO
from storefront.application.settle_order import SettleOrderHandler
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError, PaymentError, StateError
from storefront.domain.model.cart import CartOwner
from storefront.domain.model.order import OrderStatus, PaymentStatus
from storefront.domain.port.notifier import OrderNotifier, StockNotifier
from storefront.domain.port.payment_gateway import ConfirmationStatus, PaymentGateway
from storefront.domain.repository.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class ConfirmPaymentHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        stock_notifier: StockNotifier | None = None,
        order_notifier: OrderNotifier | None = None,
    ) -> None:
        self._uow = uow
        self._gateway = gateway
        self._settle = SettleOrderHandler(uow, stock_notifier, order_notifier)

    def handle(
        self,
        order_number: str,
        payment_reference: str | None = None,
        cart_owner: CartOwner | None = None,
    ) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_number(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")
            if order.payment_status is PaymentStatus.PAID:
                return OrderDTO.from_order(order)
            if order.status is OrderStatus.CANCELLED:
                raise StateError(
                    f"Order {order_number} is cancelled; its payment cannot be confirmed"
                )
            reference = payment_reference or order.payment_reference
            total = order.totals.total
        if reference is None:
            raise PaymentError(f"Order {order_number} has no payment to confirm")

        confirmation = self._gateway.confirm(reference)

        if confirmation.status is ConfirmationStatus.FAILED:
            self._record_failure(order_number)
            logger.warning(
                "payment_declined",
                order_number=order_number,
                reason=confirmation.failure_reason,
            )
            raise PaymentError(
                f"Payment for order {order_number} failed: "
                f"{confirmation.failure_reason or 'declined by gateway'}"
            )
        if confirmation.status is ConfirmationStatus.PENDING:
            raise PaymentError(f"Payment for order {order_number} is still pending")

        settled = confirmation.settled_amount
        if settled is not None and settled < total:
            self._record_failure(order_number)
            logger.warning(
                "payment_underpaid",
                order_number=order_number,
                settled=str(settled),
                total=str(total),
            )
            raise PaymentError(
                f"Payment for order {order_number} settled {settled} "
                f"but the order total is {total}"
            )

        return self._settle.handle(
            order_number,
            payment_reference=confirmation.reference,
            cart_owner=cart_owner,
        )

    def handle_reference(
        self, payment_reference: str, cart_owner: CartOwner | None = None
    ) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_payment_reference(payment_reference)
            if order is None:
                raise EntityNotFoundError(
                    f"No order found for payment reference {payment_reference}"
                )
            order_number = order.number
        return self.handle(
            order_number, payment_reference=payment_reference, cart_owner=cart_owner
        )

    def _record_failure(self, order_number: str) -> None:
        with self._uow:
            order = self._uow.orders.get_by_number_for_update(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")
            order.mark_payment_failed()
            self._uow.orders.save(order)
            self._uow.commit()
