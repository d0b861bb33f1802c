"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices change, products are activated and retired from the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money

# Stock without a recorded cost is valued at half its regular price.
FALLBACK_COST_RATIO = Decimal("0.5")


@dataclass
class Product:
    """A product in the catalog.

    Prices are VAT-inclusive.  ``sale_price`` overrides ``regular_price``
    while it is set.  ``cost_price`` is what one unit cost to buy and is
    only used to value stock on hand.
    """

    id: int | None
    sku: str
    name: str
    regular_price: Money
    sale_price: Money | None = None
    is_active: bool = True
    cost_price: Money | None = None

    @property
    def current_price(self) -> Money:
        return self.sale_price if self.sale_price is not None else self.regular_price

    @property
    def is_on_sale(self) -> bool:
        return self.sale_price is not None and self.sale_price < self.regular_price

    @property
    def valuation_price(self) -> Money:
        if self.cost_price is not None:
            return self.cost_price
        return Money(self.regular_price.amount * FALLBACK_COST_RATIO, self.regular_price.currency)

    def update_price(self, regular_price: Money, sale_price: Money | None = None) -> None:
        """Change the product price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        if regular_price.is_zero:
            raise ValidationError("Product price must be greater than zero")
        if sale_price is not None and sale_price.is_zero:
            raise ValidationError("Sale price must be greater than zero")
        self.regular_price = regular_price
        self.sale_price = sale_price

    def deactivate(self) -> None:
        self.is_active = False

    def activate(self) -> None:
        self.is_active = True
