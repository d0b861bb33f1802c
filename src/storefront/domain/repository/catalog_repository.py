"""Abstract repositories for the catalog aggregates (Product, Variant).

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory) live in the
infrastructure layer and in the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.product import Product
from storefront.domain.model.variant import Variant


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: int) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Product | None:
        """Return a product by its SKU, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product (assigns ``id`` when new)."""


class VariantRepository(ABC):

    @abstractmethod
    def get_by_id(self, variant_id: int) -> Variant | None:
        """Return a variant without locking it."""

    @abstractmethod
    def get_for_update(self, variant_id: int) -> Variant | None:
        """Return a variant holding an exclusive row lock until the unit of work ends."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Variant | None:
        """Return a variant by its SKU, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Variant]:
        """Return every variant."""

    @abstractmethod
    def list_low_stock(self) -> list[Variant]:
        """Available variants at or below their threshold, lowest stock first."""

    @abstractmethod
    def list_out_of_stock(self) -> list[Variant]:
        """Variants with nothing on hand."""

    @abstractmethod
    def save(self, variant: Variant) -> None:
        """Persist a new or updated variant (assigns ``id`` when new)."""
