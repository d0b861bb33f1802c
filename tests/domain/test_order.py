"""Unit tests for the Order aggregate and its lifecycle rules."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.domain.exceptions import StateError, ValidationError
from storefront.domain.model.order import (
    ANONYMIZED_EMAIL,
    REDACTED,
    Address,
    AddressType,
    Order,
    OrderLineItem,
    OrderStatus,
    OrderTotals,
    PaymentMethod,
    PaymentStatus,
)
from storefront.domain.model.value_objects import Money, Quantity


def _address(address_type: AddressType = AddressType.BILLING) -> Address:
    return Address(
        address_type=address_type,
        first_name="Alice",
        last_name="Meyer",
        street_address="Hauptstr. 1",
        postal_code="10115",
        city="Berlin",
        phone="+49 30 1234",
        email="alice@example.com" if address_type is AddressType.BILLING else None,
    )


def _item(variant_id: int = 1, qty: int = 2, price: str = "50.00") -> OrderLineItem:
    return OrderLineItem(
        product_id=1,
        variant_id=variant_id,
        product_name="Linen Shirt",
        sku=f"SHIRT-BL-{variant_id}",
        color="Blue",
        size="M",
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _totals(total: str = "100.00") -> OrderTotals:
    return OrderTotals(
        subtotal=Money.of(total),
        tax=Money.of(total).included_tax(Decimal("0.19")),
        shipping=Money.zero(),
        total=Money.of(total),
    )


def _order(
    payment_method: PaymentMethod = PaymentMethod.CARD,
    items: list[OrderLineItem] | None = None,
    **kwargs,
) -> Order:
    kwargs.setdefault("guest_email", "alice@example.com")
    return Order.create(
        number="ZF-261019-001",
        items=items or [_item()],
        billing_address=_address(),
        shipping_address=_address(AddressType.SHIPPING),
        totals=_totals(),
        payment_method=payment_method,
        **kwargs,
    )


class TestOrderCreation:

    def test_happy_path(self):
        order = _order()
        assert order.status is OrderStatus.PENDING
        assert order.payment_status is PaymentStatus.PENDING
        assert order.id is None  # assigned by repository
        assert order.reserves_stock

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            Order.create(
                number="ZF-261019-001",
                items=[],
                billing_address=_address(),
                shipping_address=_address(AddressType.SHIPPING),
                totals=_totals(),
                payment_method=PaymentMethod.CARD,
                guest_email="a@example.com",
            )

    def test_needs_exactly_one_customer(self):
        with pytest.raises(ValidationError, match="registered user or a guest email"):
            _order(user_id=7, guest_email="a@example.com")
        with pytest.raises(ValidationError, match="registered user or a guest email"):
            _order(guest_email=None)

    def test_invalid_guest_email(self):
        with pytest.raises(ValidationError, match="Invalid guest email"):
            _order(guest_email="not-an-email")

    def test_duplicate_variant_rejected(self):
        with pytest.raises(ValidationError, match="only once"):
            _order(items=[_item(1), _item(1)])

    def test_wrong_address_type_rejected(self):
        with pytest.raises(ValidationError, match="Shipping address"):
            Order.create(
                number="ZF-261019-001",
                items=[_item()],
                billing_address=_address(),
                shipping_address=_address(),
                totals=_totals(),
                payment_method=PaymentMethod.CARD,
                guest_email="a@example.com",
            )


class TestMarkPaid:

    def test_moves_to_processing(self):
        order = _order()
        assert order.mark_paid("pi_1") is True
        assert order.payment_status is PaymentStatus.PAID
        assert order.status is OrderStatus.PROCESSING
        assert order.paid_at is not None
        assert not order.reserves_stock
        assert order.stock_committed

    def test_second_call_is_a_no_op(self):
        order = _order()
        order.mark_paid("pi_1")
        paid_at = order.paid_at
        assert order.mark_paid("pi_2") is False
        assert order.payment_reference == "pi_1"
        assert order.paid_at == paid_at

    def test_after_failure_allowed(self):
        order = _order()
        order.mark_payment_failed()
        assert order.mark_paid() is True

    def test_cancelled_order_cannot_be_paid(self):
        order = _order()
        order.cancel()
        with pytest.raises(StateError, match="cancelled"):
            order.mark_paid()

    def test_invoice_order_keeps_processing(self):
        order = _order(PaymentMethod.INVOICE)
        order.accept_on_invoice()
        order.mark_paid()
        assert order.status is OrderStatus.PROCESSING


class TestPaymentRetry:

    def test_failed_payment_can_be_requested_again(self):
        order = _order()
        order.mark_payment_failed()
        order.await_payment("pi_2")
        assert order.payment_status is PaymentStatus.PENDING
        assert order.payment_reference == "pi_2"

    def test_invoice_has_no_gateway_payment(self):
        with pytest.raises(StateError, match="no gateway payment"):
            _order(PaymentMethod.INVOICE).ensure_payment_can_be_requested()

    def test_failed_payment_still_holds_stock(self):
        order = _order()
        order.mark_payment_failed()
        assert order.reserves_stock

    def test_mark_failed_only_from_pending(self):
        order = _order()
        order.mark_paid()
        with pytest.raises(StateError):
            order.mark_payment_failed()


class TestCancel:

    def test_pending_cancel_needs_no_restock(self):
        order = _order()
        assert order.cancel("changed my mind") is False
        assert order.status is OrderStatus.CANCELLED
        assert order.cancellation_reason == "changed my mind"
        assert order.cancelled_at is not None

    def test_paid_cancel_needs_restock(self):
        order = _order()
        order.mark_paid()
        assert order.cancel() is True

    def test_completed_cannot_be_cancelled(self):
        order = _order()
        order.mark_paid()
        order.mark_shipped("TRACK1")
        with pytest.raises(StateError, match="completed"):
            order.cancel()

    def test_refunded_cannot_be_cancelled(self):
        order = _order()
        order.mark_paid()
        order.refund()
        with pytest.raises(StateError, match="refunded"):
            order.cancel()


class TestFulfillment:

    def test_ship_then_deliver(self):
        order = _order()
        order.mark_paid()
        order.mark_shipped("TRACK1")
        assert order.status is OrderStatus.COMPLETED
        assert order.tracking_number == "TRACK1"
        order.mark_delivered()
        assert order.status is OrderStatus.DELIVERED
        assert order.delivered_at is not None

    def test_cannot_ship_pending(self):
        with pytest.raises(StateError, match="Cannot ship"):
            _order().mark_shipped()

    def test_cannot_deliver_unshipped(self):
        order = _order()
        order.mark_paid()
        with pytest.raises(StateError, match="delivered"):
            order.mark_delivered()


class TestRefund:

    def test_partial_then_full(self):
        order = _order()
        order.mark_paid()
        assert order.refund(Money.of("30.00")) == Money.of("30.00")
        assert order.payment_status is PaymentStatus.PARTIALLY_REFUNDED
        assert order.refundable_amount == Money.of("70.00")
        assert order.refund() == Money.of("70.00")
        assert order.payment_status is PaymentStatus.REFUNDED

    def test_cannot_exceed_paid_total(self):
        order = _order()
        order.mark_paid()
        with pytest.raises(ValidationError, match="exceeds"):
            order.refund(Money.of("100.01"))

    def test_unpaid_cannot_be_refunded(self):
        with pytest.raises(StateError, match="Cannot refund"):
            _order().refund()

    def test_zero_refund_rejected(self):
        order = _order()
        order.mark_paid()
        with pytest.raises(ValidationError, match="greater than zero"):
            order.refund(Money.zero())


class TestExpiry:

    def test_expired_after_timeout(self):
        created = datetime(2026, 10, 1, 12, tzinfo=timezone.utc)
        order = _order(now=created)
        timeout = timedelta(hours=24)
        assert not order.is_expired(created + timedelta(hours=23), timeout)
        assert order.is_expired(created + timedelta(hours=25), timeout)

    def test_paid_order_never_expires(self):
        created = datetime(2026, 10, 1, 12, tzinfo=timezone.utc)
        order = _order(now=created)
        order.mark_paid()
        assert not order.is_expired(created + timedelta(days=3), timedelta(hours=24))


class TestAnonymize:

    def test_strips_personal_data_keeps_money(self):
        order = _order(user_id=7, guest_email=None, customer_notes="Ring twice")
        order.anonymize()
        assert order.user_id is None
        assert order.guest_email == ANONYMIZED_EMAIL
        assert order.billing_address.first_name == REDACTED
        assert order.billing_address.email is None
        assert order.shipping_address.street_address == REDACTED
        assert order.customer_notes is None
        assert order.totals.total == Money.of("100.00")
        assert len(order.items) == 1
