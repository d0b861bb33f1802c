"""Unit of work -- one atomic transaction over every repository.

Usage::

    with uow:
        variant = uow.variants.get_for_update(variant_id)
        ...
        uow.commit()

Leaving the block without ``commit()`` (or through an exception) rolls
everything back: no partial order, no partial ledger mutation, no partial
cart clear.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.repository.cart_store import CartStoreProvider
from storefront.domain.repository.catalog_repository import (
    ProductRepository,
    VariantRepository,
)
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.shipping_method_repository import (
    ShippingMethodRepository,
)
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)


class UnitOfWork(ABC):

    products: ProductRepository
    variants: VariantRepository
    movements: StockMovementRepository
    orders: OrderRepository
    shipping_methods: ShippingMethodRepository
    carts: CartStoreProvider

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since ``__enter__`` durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes (no-op after ``commit``)."""
