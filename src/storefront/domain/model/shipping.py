"""Shipping methods offered at checkout."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.value_objects import Money


@dataclass
class ShippingMethod:
    id: int | None
    code: str
    name: str
    base_cost: Money
    free_shipping_threshold: Money | None = None
    is_active: bool = True

    def qualifies_for_free_shipping(self, subtotal: Money) -> bool:
        return (
            self.free_shipping_threshold is not None
            and subtotal >= self.free_shipping_threshold
        )

    def cost_for(self, subtotal: Money) -> Money:
        """Shipping cost for a (VAT-inclusive) order subtotal."""
        if self.qualifies_for_free_shipping(subtotal):
            return Money.zero(self.base_cost.currency)
        return self.base_cost
