"""Domain service: order pricing.

Catalog prices are VAT-inclusive, so tax is extracted from the subtotal
rather than added to it::

    tax   = subtotal * rate / (1 + rate)
    total = subtotal + shipping
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from storefront.domain.model.order import OrderTotals
from storefront.domain.model.shipping import ShippingMethod
from storefront.domain.model.value_objects import Money

DEFAULT_VAT_RATE = Decimal("0.19")


class PricingService:

    def __init__(self, vat_rate: Decimal = DEFAULT_VAT_RATE, currency: str = "EUR") -> None:
        self._vat_rate = vat_rate
        self._currency = currency

    def subtotal(self, line_totals: Iterable[Money]) -> Money:
        result = Money.zero(self._currency)
        for amount in line_totals:
            result = result + amount
        return result

    def totals(self, subtotal: Money, shipping_method: ShippingMethod) -> OrderTotals:
        shipping = shipping_method.cost_for(subtotal)
        return OrderTotals(
            subtotal=subtotal,
            tax=subtotal.included_tax(self._vat_rate),
            shipping=shipping,
            total=subtotal + shipping,
        )
