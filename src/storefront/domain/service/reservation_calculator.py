"""Domain service: Reservation Calculator.

There is no reservation table.  A unit is "held" while it sits on an
order that is pending and unpaid, so availability is always a live
projection::

    available = on_hand - sum(quantities on pending, unpaid orders)

The calculator does not lock.  Its answer is race-free only when the
caller already holds the variant's row lock (see ``VariantRepository.
get_for_update``) and keeps it until the dependent write commits.
"""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.cart import MAX_LINE_QUANTITY
from storefront.domain.repository.catalog_repository import (
    ProductRepository,
    VariantRepository,
)
from storefront.domain.repository.order_repository import OrderRepository


class ReservationCalculator:

    def __init__(
        self,
        variant_repo: VariantRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        max_line_quantity: int = MAX_LINE_QUANTITY,
    ) -> None:
        self._variant_repo = variant_repo
        self._product_repo = product_repo
        self._order_repo = order_repo
        self._max_line_quantity = max_line_quantity

    def reserved_quantity(self, variant_id: int) -> int:
        return self._order_repo.reserved_quantity(variant_id)

    def available_quantity(self, variant_id: int) -> int:
        variant = self._variant_repo.get_by_id(variant_id)
        if variant is None:
            raise EntityNotFoundError(f"Variant #{variant_id} not found")
        return max(0, variant.stock_quantity - self.reserved_quantity(variant_id))

    def check_availability(self, variant_id: int, requested: int) -> bool:
        """True if *requested* units can be sold right now."""
        variant = self._variant_repo.get_by_id(variant_id)
        if variant is None or not variant.is_available:
            return False
        product = self._product_repo.get_by_id(variant.product_id)
        if product is None or not product.is_active:
            return False
        return self.available_quantity(variant_id) >= requested

    def max_cart_quantity(self, variant_id: int) -> int:
        """Per-line ceiling: the configured maximum or what is available, whichever is lower."""
        return min(self._max_line_quantity, self.available_quantity(variant_id))
