"""Abstract repository for shipping methods."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.shipping import ShippingMethod


class ShippingMethodRepository(ABC):

    @abstractmethod
    def get_by_id(self, method_id: int) -> ShippingMethod | None:
        """Return a shipping method by its ID, or None."""

    @abstractmethod
    def get_by_code(self, code: str) -> ShippingMethod | None:
        """Return a shipping method by its code, or None."""

    @abstractmethod
    def list_active(self) -> list[ShippingMethod]:
        """Return every active shipping method."""

    @abstractmethod
    def save(self, method: ShippingMethod) -> None:
        """Persist a new or updated shipping method."""
