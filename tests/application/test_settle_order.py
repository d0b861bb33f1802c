"""Integration tests for payment confirmation and settlement."""

import pytest

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.confirm_payment import ConfirmPaymentHandler
from storefront.application.place_order import PlaceOrderHandler
from storefront.application.settle_order import SettleOrderHandler
from storefront.domain.exceptions import EntityNotFoundError, PaymentError, StateError
from storefront.domain.model.cart import CartOwner
from storefront.domain.model.order import OrderStatus, PaymentStatus
from storefront.domain.model.stock_movement import ReferenceType, StockSignalType
from storefront.domain.model.value_objects import Money
from storefront.domain.port.payment_gateway import ConfirmationStatus
from tests.fakes import (
    FakePaymentGateway,
    FakeUnitOfWork,
    RecordingOrderNotifier,
    RecordingStockNotifier,
    add_product,
    add_shipping_method,
    add_variant,
    checkout_request,
)

USER = CartOwner.user(7)


def _setup(stock: int = 5, quantity: int = 2, payment_method: str = "card"):
    """Place an order for *quantity* units and return everything needed to settle it."""
    uow = FakeUnitOfWork()
    variant = add_variant(uow, add_product(uow), stock=stock)
    shipping = add_shipping_method(uow)
    gateway = FakePaymentGateway()
    uow.carts.store_for(USER).put(variant.id, quantity)
    result = PlaceOrderHandler(uow, gateway).handle(
        USER, checkout_request(shipping.id, payment_method=payment_method)
    )
    return uow, variant, gateway, result.order.number


def _order_movements(uow: FakeUnitOfWork, number: str):
    return [
        m
        for m in uow.store.movements
        if m.reference == number and m.reference_type is ReferenceType.ORDER
    ]


class TestConfirmPayment:

    def test_success_settles_and_decrements(self):
        uow, variant, gateway, number = _setup(stock=5, quantity=2)
        order_notifier = RecordingOrderNotifier()

        dto = ConfirmPaymentHandler(uow, gateway, order_notifier=order_notifier).handle(number)

        assert dto.status == "processing"
        assert dto.payment_status == "paid"
        assert uow.variants.get_by_id(variant.id).stock_quantity == 3
        assert [m.quantity_delta for m in _order_movements(uow, number)] == [-2]
        assert order_notifier.confirmed == [number]

    def test_clears_cart_of_owner(self):
        uow, variant, gateway, number = _setup()
        ConfirmPaymentHandler(uow, gateway).handle(number, cart_owner=USER)
        assert uow.carts.store_for(USER).lines() == []

    def test_clears_session_cart_after_commit(self):
        uow, variant, gateway, number = _setup()
        session = {"cart": {str(variant.id): {"quantity": 1, "added_at": "2026-10-19T10:00:00+00:00"}}}

        ConfirmPaymentHandler(uow, gateway).handle(number, cart_owner=CartOwner.anonymous(session))

        assert "cart" not in session

    def test_repeated_confirmation_decrements_once(self):
        uow, variant, gateway, number = _setup(stock=5, quantity=2)
        handler = ConfirmPaymentHandler(uow, gateway)

        handler.handle(number)
        handler.handle(number)

        assert uow.variants.get_by_id(variant.id).stock_quantity == 3
        assert len(_order_movements(uow, number)) == 1
        assert len(gateway.confirmed) == 1

    def test_declined_marks_failed_and_keeps_stock(self):
        uow, variant, gateway, number = _setup(stock=5)
        gateway.confirmation = ConfirmationStatus.FAILED

        with pytest.raises(PaymentError, match="card_declined"):
            ConfirmPaymentHandler(uow, gateway).handle(number)

        order = uow.orders.get_by_number(number)
        assert order.payment_status is PaymentStatus.FAILED
        assert order.status is OrderStatus.PENDING
        assert uow.variants.get_by_id(variant.id).stock_quantity == 5

    def test_still_pending(self):
        uow, _, gateway, number = _setup()
        gateway.confirmation = ConfirmationStatus.PENDING

        with pytest.raises(PaymentError, match="still pending"):
            ConfirmPaymentHandler(uow, gateway).handle(number)
        assert uow.orders.get_by_number(number).payment_status is PaymentStatus.PENDING

    def test_unknown_order(self):
        uow, _, gateway, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            ConfirmPaymentHandler(uow, gateway).handle("ZF-000000-001")

    def test_short_settlement_is_treated_as_failure(self):
        uow, variant, gateway, number = _setup(stock=5, quantity=2)
        gateway.settled_amount = Money.of("0.01")

        with pytest.raises(PaymentError, match="settled"):
            ConfirmPaymentHandler(uow, gateway).handle(number)

        order = uow.orders.get_by_number(number)
        assert order.payment_status is PaymentStatus.FAILED
        assert order.status is OrderStatus.PENDING
        assert uow.variants.get_by_id(variant.id).stock_quantity == 5
        assert _order_movements(uow, number) == []

    def test_full_settlement_amount_is_accepted(self):
        uow, variant, gateway, number = _setup(stock=5, quantity=2)
        gateway.settled_amount = uow.orders.get_by_number(number).totals.total

        dto = ConfirmPaymentHandler(uow, gateway).handle(number)

        assert dto.payment_status == "paid"
        assert uow.variants.get_by_id(variant.id).stock_quantity == 3

    def test_cancelled_order_is_not_sent_to_gateway(self):
        uow, variant, gateway, number = _setup(stock=5, quantity=2)
        CancelOrderHandler(uow).handle(number)

        with pytest.raises(StateError, match="cancelled"):
            ConfirmPaymentHandler(uow, gateway).handle(number)

        assert gateway.confirmed == []
        assert uow.orders.get_by_number(number).status is OrderStatus.CANCELLED
        assert uow.variants.get_by_id(variant.id).stock_quantity == 5

    def test_confirm_by_payment_reference(self):
        uow, variant, gateway, number = _setup(stock=5, quantity=2)
        reference = uow.orders.get_by_number(number).payment_reference

        dto = ConfirmPaymentHandler(uow, gateway).handle_reference(reference)

        assert dto.number == number
        assert dto.payment_status == "paid"
        assert gateway.confirmed == [reference]
        assert uow.variants.get_by_id(variant.id).stock_quantity == 3

    def test_unknown_payment_reference(self):
        uow, _, gateway, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="pi_unknown"):
            ConfirmPaymentHandler(uow, gateway).handle_reference("pi_unknown")
        assert gateway.confirmed == []


class TestSettleOrder:

    def test_settling_twice_decrements_once(self):
        uow, variant, _, number = _setup(stock=5, quantity=2)
        handler = SettleOrderHandler(uow)

        handler.handle(number, payment_reference="bank-1")
        handler.handle(number, payment_reference="bank-2")

        assert uow.variants.get_by_id(variant.id).stock_quantity == 3
        assert uow.orders.get_by_number(number).payment_reference == "bank-1"

    def test_invoice_order_marked_paid(self):
        uow, variant, _, number = _setup(stock=5, quantity=2, payment_method="invoice")

        dto = SettleOrderHandler(uow).handle(number)

        assert dto.status == "processing"
        assert dto.payment_status == "paid"
        assert uow.variants.get_by_id(variant.id).stock_quantity == 3

    def test_failure_mid_settlement_rolls_everything_back(self):
        uow = FakeUnitOfWork()
        product = add_product(uow)
        first = add_variant(uow, product, size="M", stock=5)
        second = add_variant(uow, product, size="L", stock=5)
        shipping = add_shipping_method(uow)
        store = uow.carts.store_for(USER)
        store.put(first.id, 1)
        store.put(second.id, 1)
        number = PlaceOrderHandler(uow, FakePaymentGateway()).handle(
            USER, checkout_request(shipping.id)
        ).order.number
        # The second line's variant vanishes before settlement.
        del uow.store.variants[second.id]

        with pytest.raises(EntityNotFoundError):
            SettleOrderHandler(uow).handle(number)

        assert uow.variants.get_by_id(first.id).stock_quantity == 5
        assert _order_movements(uow, number) == []
        assert uow.orders.get_by_number(number).payment_status is PaymentStatus.PENDING

    def test_publishes_stock_signals_after_commit(self):
        uow, variant, _, number = _setup(stock=2, quantity=2)
        notifier = RecordingStockNotifier()

        SettleOrderHandler(uow, stock_notifier=notifier).handle(number)

        assert [s.type for s in notifier.signals] == [StockSignalType.OUT_OF_STOCK]
        assert notifier.signals[0].variant_id == variant.id

    def test_failing_notifier_does_not_undo_settlement(self):
        uow, variant, _, number = _setup(stock=2, quantity=2)

        SettleOrderHandler(uow, stock_notifier=RecordingStockNotifier(fail=True)).handle(number)

        assert uow.orders.get_by_number(number).payment_status is PaymentStatus.PAID
        assert uow.variants.get_by_id(variant.id).stock_quantity == 0
