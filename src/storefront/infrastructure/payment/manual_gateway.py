"""Offline payment gateway.

Stands in for a card/PayPal provider when none is configured: intents are
local handles and every confirmation succeeds for the full order total.
"""

from __future__ import annotations

import uuid

from storefront.config.logging import get_logger
from storefront.domain.model.order import Order
from storefront.domain.model.value_objects import Money
from storefront.domain.port.payment_gateway import (
    ConfirmationStatus,
    PaymentConfirmation,
    PaymentGateway,
    PaymentIntent,
    RefundReceipt,
)

logger = get_logger(__name__)


class ManualPaymentGateway(PaymentGateway):

    def __init__(self) -> None:
        self._amounts: dict[str, Money] = {}

    def create_intent(self, order: Order) -> PaymentIntent:
        reference = f"manual_{uuid.uuid4().hex[:16]}"
        self._amounts[reference] = order.totals.total
        logger.info(
            "payment_intent_created",
            order_number=order.number,
            reference=reference,
            amount=str(order.totals.total),
        )
        return PaymentIntent(reference=reference, client_secret=f"{reference}_secret")

    def confirm(self, reference: str) -> PaymentConfirmation:
        return PaymentConfirmation(
            reference=reference,
            status=ConfirmationStatus.SUCCEEDED,
            settled_amount=self._amounts.get(reference),
        )

    def refund(self, order: Order, amount: Money) -> RefundReceipt:
        reference = f"refund_{uuid.uuid4().hex[:16]}"
        logger.info(
            "payment_refunded",
            order_number=order.number,
            reference=reference,
            amount=str(amount),
        )
        return RefundReceipt(reference=reference, amount=amount)
