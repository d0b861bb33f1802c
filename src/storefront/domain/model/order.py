"""Order aggregate -- the core of the domain.

The Order is an aggregate root that owns its line items and addresses.
Its status and payment status form two orthogonal state machines; the
transitions here decide *when* stock has to move, the stock ledger does
the moving.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from storefront.domain.exceptions import StateError, ValidationError
from storefront.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(Enum):
    CARD = "card"
    PAYPAL = "paypal"
    INVOICE = "invoice"

    @property
    def requires_confirmation(self) -> bool:
        """True when settlement arrives later through a gateway callback."""
        return self is not PaymentMethod.INVOICE


class AddressType(Enum):
    BILLING = "billing"
    SHIPPING = "shipping"


CANCELLABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)
REDACTED = "[redacted]"
ANONYMIZED_EMAIL = "anonymized@invalid"


@dataclass(frozen=True)
class Address:
    address_type: AddressType
    first_name: str
    last_name: str
    street_address: str
    postal_code: str
    city: str
    phone: str
    country: str = "DE"
    email: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def as_type(self, address_type: AddressType) -> Address:
        return replace(self, address_type=address_type)

    def redacted(self) -> Address:
        return replace(
            self,
            first_name=REDACTED,
            last_name=REDACTED,
            street_address=REDACTED,
            phone=REDACTED,
            email=None,
        )


@dataclass(frozen=True)
class OrderLineItem:
    """Snapshot of a variant at order time.

    Name, SKU, color and size are copied so historical orders do not
    change when catalog text does.
    """

    product_id: int
    variant_id: int
    product_name: str
    sku: str
    color: str | None
    size: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Money
    tax: Money  # informational, already contained in subtotal
    shipping: Money
    total: Money


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders -- it enforces all business
    rules.  The ``__init__`` is intentionally simple so the repository
    can reconstitute persisted orders without re-validating.
    """

    id: int | None
    number: str
    items: list[OrderLineItem]
    billing_address: Address
    shipping_address: Address
    totals: OrderTotals
    payment_method: PaymentMethod
    user_id: int | None = None
    guest_email: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: str | None = None
    refunded_amount: Money | None = None
    customer_notes: str | None = None
    tracking_number: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    paid_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        number: str,
        items: list[OrderLineItem],
        billing_address: Address,
        shipping_address: Address,
        totals: OrderTotals,
        payment_method: PaymentMethod,
        user_id: int | None = None,
        guest_email: str | None = None,
        customer_notes: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new pending order, enforcing all invariants."""
        if not items:
            raise ValidationError("Order must contain at least one item")
        if (user_id is None) == (guest_email is None):
            raise ValidationError("Order needs either a registered user or a guest email")
        if guest_email is not None and "@" not in guest_email:
            raise ValidationError(f"Invalid guest email: {guest_email!r}")
        if billing_address.address_type is not AddressType.BILLING:
            raise ValidationError("Billing address has the wrong type")
        if shipping_address.address_type is not AddressType.SHIPPING:
            raise ValidationError("Shipping address has the wrong type")

        variant_ids = [item.variant_id for item in items]
        if len(set(variant_ids)) != len(variant_ids):
            raise ValidationError("Each variant may appear only once per order")

        return Order(
            id=None,
            number=number,
            items=list(items),
            billing_address=billing_address,
            shipping_address=shipping_address,
            totals=totals,
            payment_method=payment_method,
            user_id=user_id,
            guest_email=guest_email,
            customer_notes=customer_notes,
            created_at=now or datetime.now(timezone.utc),
        )

    # --- Queries ----------------------------------------------------------------

    @property
    def can_be_cancelled(self) -> bool:
        return (
            self.status in CANCELLABLE_STATUSES
            and self.payment_status is not PaymentStatus.REFUNDED
        )

    @property
    def reserves_stock(self) -> bool:
        """Unconfirmed hold: counted against availability, not yet decremented."""
        return self.status is OrderStatus.PENDING and self.payment_status is not PaymentStatus.PAID

    @property
    def stock_committed(self) -> bool:
        """True once settlement has taken the line quantities off the ledger.

        Also true for partially refunded orders; cancelling one restores
        every line.
        """
        return self.status is not OrderStatus.CANCELLED and self.payment_status in (
            PaymentStatus.PAID,
            PaymentStatus.PARTIALLY_REFUNDED,
        )

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def customer_email(self) -> str | None:
        return self.guest_email or self.billing_address.email

    @property
    def item_count(self) -> int:
        return sum(item.quantity.value for item in self.items)

    @property
    def refundable_amount(self) -> Money:
        refunded = self.refunded_amount or Money.zero(self.totals.total.currency)
        return self.totals.total - refunded

    def is_expired(self, now: datetime, timeout: timedelta) -> bool:
        return self.reserves_stock and self.created_at < now - timeout

    # --- Payment axis ---------------------------------------------------------

    def mark_paid(self, payment_reference: str | None = None, now: datetime | None = None) -> bool:
        """Record settlement.

        Returns False (and changes nothing) if the order is already paid,
        so repeated gateway callbacks are harmless.  The caller decrements
        stock only when this returns True.
        """
        if self.payment_status is PaymentStatus.PAID:
            return False
        if self.status is OrderStatus.CANCELLED:
            raise StateError(f"Order {self.number} is cancelled and cannot be paid")
        if self.payment_status not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
            raise StateError(
                f"Cannot mark order {self.number} as paid -- payment status is "
                f"{self.payment_status.value}"
            )
        self.payment_status = PaymentStatus.PAID
        if payment_reference:
            self.payment_reference = payment_reference
        self.paid_at = now or datetime.now(timezone.utc)
        if self.status is OrderStatus.PENDING:
            self.status = OrderStatus.PROCESSING
        return True

    def mark_payment_failed(self) -> None:
        if self.payment_status is PaymentStatus.FAILED:
            return
        if self.payment_status is not PaymentStatus.PENDING:
            raise StateError(
                f"Cannot mark payment of order {self.number} as failed -- payment "
                f"status is {self.payment_status.value}"
            )
        self.payment_status = PaymentStatus.FAILED

    def ensure_payment_can_be_requested(self) -> None:
        if not self.payment_method.requires_confirmation:
            raise StateError(
                f"Order {self.number} is paid by {self.payment_method.value}; "
                f"there is no gateway payment to request"
            )
        if self.status is not OrderStatus.PENDING:
            raise StateError(
                f"Order {self.number} is {self.status.value}; payment can only be "
                f"requested for pending orders"
            )
        if self.payment_status not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
            raise StateError(
                f"Order {self.number} payment is already {self.payment_status.value}"
            )

    def await_payment(self, payment_reference: str) -> None:
        """Attach a fresh gateway handle (first attempt or retry after failure)."""
        self.ensure_payment_can_be_requested()
        self.payment_status = PaymentStatus.PENDING
        self.payment_reference = payment_reference

    def accept_on_invoice(self) -> None:
        """Pay-later orders go straight to processing; settlement comes later."""
        if self.payment_method.requires_confirmation:
            raise StateError(
                f"Order {self.number} must be paid by {self.payment_method.value} first"
            )
        if self.status is not OrderStatus.PENDING:
            raise StateError(
                f"Cannot accept order {self.number} in {self.status.value} status"
            )
        self.status = OrderStatus.PROCESSING

    def validate_refund(self, amount: Money | None = None) -> Money:
        """Amount a refund would return; raises if the refund is not allowed."""
        if self.payment_status not in (PaymentStatus.PAID, PaymentStatus.PARTIALLY_REFUNDED):
            raise StateError(
                f"Cannot refund order {self.number} -- payment status is "
                f"{self.payment_status.value}"
            )
        remaining = self.refundable_amount
        amount = remaining if amount is None else amount
        if amount.is_zero:
            raise ValidationError("Refund amount must be greater than zero")
        if amount > remaining:
            raise ValidationError(
                f"Refund {amount} exceeds refundable amount {remaining}"
            )
        return amount

    def refund(self, amount: Money | None = None) -> Money:
        """Record a full (``amount=None``) or partial refund; returns the amount."""
        amount = self.validate_refund(amount)
        refunded = (self.refunded_amount or Money.zero(amount.currency)) + amount
        self.refunded_amount = refunded
        if refunded == self.totals.total:
            self.payment_status = PaymentStatus.REFUNDED
        else:
            self.payment_status = PaymentStatus.PARTIALLY_REFUNDED
        return amount

    # --- Fulfillment axis -------------------------------------------------------

    def mark_shipped(self, tracking_number: str | None = None, now: datetime | None = None) -> None:
        if self.status is not OrderStatus.PROCESSING:
            raise StateError(
                f"Cannot ship order {self.number} in {self.status.value} status"
            )
        self.status = OrderStatus.COMPLETED
        self.tracking_number = tracking_number
        self.shipped_at = now or datetime.now(timezone.utc)

    def mark_delivered(self, now: datetime | None = None) -> None:
        if self.status is not OrderStatus.COMPLETED:
            raise StateError(
                f"Cannot mark order {self.number} delivered in {self.status.value} status"
            )
        self.status = OrderStatus.DELIVERED
        self.delivered_at = now or datetime.now(timezone.utc)

    def cancel(self, reason: str | None = None, now: datetime | None = None) -> bool:
        """Transition PENDING|PROCESSING -> CANCELLED.

        Returns True when stock had already been decremented for this
        order, i.e. the caller must restore the line quantities.
        """
        if not self.can_be_cancelled:
            state = (
                self.payment_status.value
                if self.payment_status is PaymentStatus.REFUNDED
                else self.status.value
            )
            raise StateError(f"Cannot cancel order {self.number} -- it is {state}")
        restore = self.stock_committed
        self.status = OrderStatus.CANCELLED
        self.cancelled_at = now or datetime.now(timezone.utc)
        self.cancellation_reason = reason
        return restore

    # --- Erasure ----------------------------------------------------------------

    def anonymize(self) -> None:
        """Strip personal data; money and line items stay for bookkeeping."""
        self.user_id = None
        self.guest_email = ANONYMIZED_EMAIL
        self.billing_address = self.billing_address.redacted()
        self.shipping_address = self.shipping_address.redacted()
        self.customer_notes = None
