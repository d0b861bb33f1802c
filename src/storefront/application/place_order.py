"""Application service: Place Order use case (checkout).

Turns the caller's cart into an order in one unit of work:

1. re-read the cart (never trust a client-side total),
2. lock every variant, in ascending id order, and check availability
   under that lock,
3. price the lines at live catalog prices and extract VAT,
4. resolve shipping,
5. create the order with line snapshots and both addresses.

Card/PayPal orders stay pending/pending and a gateway payment is opened
*after* the transaction commits.  Invoice orders go to processing and the
cart is cleared in the same transaction.  Stock is never decremented
here -- settlement does that.

A duplicate order number (two checkouts on the same day racing for the
same sequence) aborts the unit of work; the whole checkout is retried a
bounded number of times.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from storefront.application.dto import CheckoutRequest, OrderDTO, PlaceOrderResult
from storefront.application.notifications import send_order_confirmation
from storefront.application.request_payment import RequestPaymentHandler
from storefront.config.logging import get_logger
from storefront.domain.exceptions import (
    AvailabilityError,
    ConcurrencyConflict,
    EntityNotFoundError,
    PaymentError,
    ValidationError,
)
from storefront.domain.model.cart import MAX_LINE_QUANTITY, CartOwner
from storefront.domain.model.order import (
    AddressType,
    Order,
    OrderLineItem,
    PaymentMethod,
)
from storefront.domain.model.value_objects import Quantity
from storefront.domain.port.notifier import OrderNotifier
from storefront.domain.port.payment_gateway import PaymentGateway
from storefront.domain.repository.cart_store import CartStore
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.order_numbers import DEFAULT_PREFIX, OrderNumberGenerator
from storefront.domain.service.pricing import DEFAULT_VAT_RATE, PricingService
from storefront.domain.service.reservation_calculator import ReservationCalculator

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class PlaceOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        order_notifier: OrderNotifier | None = None,
        order_prefix: str = DEFAULT_PREFIX,
        vat_rate: Decimal = DEFAULT_VAT_RATE,
        currency: str = "EUR",
        max_line_quantity: int = MAX_LINE_QUANTITY,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._uow = uow
        self._gateway = gateway
        self._order_notifier = order_notifier
        self._order_prefix = order_prefix
        self._pricing = PricingService(vat_rate=vat_rate, currency=currency)
        self._max_line_quantity = max_line_quantity
        self._max_attempts = max_attempts

    def handle(self, owner: CartOwner, request: CheckoutRequest) -> PlaceOrderResult:
        payment_method = _parse_payment_method(request.payment_method)

        for attempt in range(1, self._max_attempts + 1):
            try:
                order, store = self._place(owner, request, payment_method)
                break
            except ConcurrencyConflict:
                if attempt == self._max_attempts:
                    logger.error("order_placement_conflict", attempts=attempt)
                    raise
                logger.warning("order_placement_retry", attempt=attempt)

        logger.info(
            "order_placed",
            order_number=order.number,
            total=str(order.totals.total),
            payment_method=payment_method.value,
            items=order.item_count,
        )

        if payment_method.requires_confirmation:
            try:
                intent = RequestPaymentHandler(self._uow, self._gateway).handle(order.number)
            except PaymentError as exc:
                raise PaymentError(
                    f"Order {order.number} was placed but payment could not be started "
                    f"({exc}); retry payment for order {order.number}",
                    order_number=order.number,
                ) from exc
            order.await_payment(intent.reference)
            return PlaceOrderResult(
                order=OrderDTO.from_order(order),
                payment_reference=intent.reference,
                client_secret=intent.client_secret,
            )

        if not store.persistent:
            store.clear()
        send_order_confirmation(self._order_notifier, order)
        return PlaceOrderResult(order=OrderDTO.from_order(order))

    # --- Unit of work -------------------------------------------------------------

    def _place(
        self,
        owner: CartOwner,
        request: CheckoutRequest,
        payment_method: PaymentMethod,
    ) -> tuple[Order, CartStore]:
        now = datetime.now(timezone.utc)
        with self._uow:
            uow = self._uow
            store = uow.carts.store_for(owner)
            lines = sorted(store.lines(), key=lambda line: line.variant_id)
            if not lines:
                raise ValidationError("Your cart is empty")

            shipping_method = uow.shipping_methods.get_by_id(request.shipping_method_id)
            if shipping_method is None or not shipping_method.is_active:
                raise EntityNotFoundError(
                    f"Shipping method #{request.shipping_method_id} not found"
                )

            calculator = ReservationCalculator(
                uow.variants,
                uow.products,
                uow.orders,
                max_line_quantity=self._max_line_quantity,
            )
            items: list[OrderLineItem] = []
            for line in lines:
                variant = uow.variants.get_for_update(line.variant_id)
                if variant is None:
                    raise EntityNotFoundError(f"Variant #{line.variant_id} not found")
                product = uow.products.get_by_id(variant.product_id)
                product_name = product.name if product else variant.sku

                # Checked while holding the variant lock, so no concurrent
                # checkout can claim the same units before this commits.
                if product is None or not calculator.check_availability(
                    variant.id, line.quantity  # type: ignore[arg-type]
                ):
                    raise AvailabilityError(
                        f"Insufficient stock for {product_name} "
                        f"({variant.sku}, requested {line.quantity})"
                    )

                items.append(
                    OrderLineItem(
                        product_id=product.id,  # type: ignore[arg-type]
                        variant_id=variant.id,  # type: ignore[arg-type]
                        product_name=product.name,
                        sku=variant.sku,
                        color=variant.color,
                        size=variant.size,
                        quantity=Quantity(line.quantity),
                        unit_price=product.current_price,  # <-- price snapshot
                    )
                )

            subtotal = self._pricing.subtotal(item.line_total for item in items)
            totals = self._pricing.totals(subtotal, shipping_method)

            billing = request.billing.to_address(AddressType.BILLING, email=request.email)
            shipping_details = request.shipping or request.billing
            shipping = shipping_details.to_address(AddressType.SHIPPING)

            number = OrderNumberGenerator(uow.orders, self._order_prefix).next_number(now.date())
            order = Order.create(
                number=number,
                items=items,
                billing_address=billing,
                shipping_address=shipping,
                totals=totals,
                payment_method=payment_method,
                user_id=owner.user_id,
                guest_email=None if owner.is_authenticated else request.email,
                customer_notes=request.customer_notes,
                now=now,
            )

            if not payment_method.requires_confirmation:
                order.accept_on_invoice()
                if store.persistent:
                    store.clear()

            uow.orders.save(order)
            uow.commit()
        return order, store


def _parse_payment_method(raw: str) -> PaymentMethod:
    try:
        return PaymentMethod(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(method.value for method in PaymentMethod)
        raise ValidationError(f"Unknown payment method '{raw}' (expected one of: {allowed})")
