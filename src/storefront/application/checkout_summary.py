"""Application service: checkout summary (read-only totals preview)."""

from __future__ import annotations

from decimal import Decimal

from storefront.application.dto import CheckoutSummaryDTO
from storefront.application.manage_cart import build_cart_dto
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.cart import MAX_LINE_QUANTITY, CartOwner
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.pricing import DEFAULT_VAT_RATE, PricingService
from storefront.domain.service.reservation_calculator import ReservationCalculator


class CheckoutSummaryHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        vat_rate: Decimal = DEFAULT_VAT_RATE,
        currency: str = "EUR",
        max_line_quantity: int = MAX_LINE_QUANTITY,
    ) -> None:
        self._uow = uow
        self._pricing = PricingService(vat_rate=vat_rate, currency=currency)
        self._currency = currency
        self._max_line_quantity = max_line_quantity

    def handle(self, owner: CartOwner, shipping_method_id: int) -> CheckoutSummaryDTO:
        """Totals the customer would pay right now; nothing is locked or written."""
        with self._uow:
            store = self._uow.carts.store_for(owner)
            calculator = ReservationCalculator(
                self._uow.variants,
                self._uow.products,
                self._uow.orders,
                max_line_quantity=self._max_line_quantity,
            )
            cart = build_cart_dto(self._uow, store, calculator, self._currency)
            if not cart.lines:
                raise ValidationError("Your cart is empty")

            method = self._uow.shipping_methods.get_by_id(shipping_method_id)
            if method is None or not method.is_active:
                raise EntityNotFoundError(f"Shipping method #{shipping_method_id} not found")

            prices = []
            for line in store.lines():
                variant = self._uow.variants.get_by_id(line.variant_id)
                product = self._uow.products.get_by_id(variant.product_id) if variant else None
                if product is not None:
                    prices.append(product.current_price * line.quantity)
            subtotal = self._pricing.subtotal(prices)
            totals = self._pricing.totals(subtotal, method)

        return CheckoutSummaryDTO(
            cart=cart,
            subtotal=str(totals.subtotal),
            tax=str(totals.tax),
            shipping=str(totals.shipping),
            total=str(totals.total),
            free_shipping=method.qualifies_for_free_shipping(subtotal),
        )
