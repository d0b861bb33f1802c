"""Payment gateway port.

The core only needs the success/failure/amount signal from a gateway;
concrete SDK integrations live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from storefront.domain.model.order import Order
from storefront.domain.model.value_objects import Money


class ConfirmationStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class PaymentIntent:
    reference: str
    client_secret: str | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    reference: str
    status: ConfirmationStatus
    settled_amount: Money | None = None
    failure_reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is ConfirmationStatus.SUCCEEDED


@dataclass(frozen=True)
class RefundReceipt:
    reference: str
    amount: Money


class PaymentGateway(ABC):
    """Raises PaymentError when the gateway itself cannot be reached."""

    @abstractmethod
    def create_intent(self, order: Order) -> PaymentIntent:
        """Open a payment for the order total."""

    @abstractmethod
    def confirm(self, reference: str) -> PaymentConfirmation:
        """Ask the gateway whether the payment behind *reference* settled."""

    @abstractmethod
    def refund(self, order: Order, amount: Money) -> RefundReceipt:
        """Return *amount* of the captured payment to the customer."""
