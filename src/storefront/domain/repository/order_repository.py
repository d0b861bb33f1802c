"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_number(self, number: str) -> Order | None:
        """Return an order by its order number, or None if not found."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Order | None:
        """Return the order a gateway payment reference belongs to, or None."""

    @abstractmethod
    def get_by_number_for_update(self, number: str) -> Order | None:
        """Like ``get_by_number`` but locks the order row for the unit of work."""

    @abstractmethod
    def last_number_with_prefix(self, prefix: str) -> str | None:
        """Highest order number starting with *prefix*, or None."""

    @abstractmethod
    def reserved_quantity(self, variant_id: int) -> int:
        """Units of a variant held by pending, unpaid orders."""

    @abstractmethod
    def list_expired_pending(self, created_before: datetime) -> list[Order]:
        """Pending, unpaid orders created before the cutoff."""

    @abstractmethod
    def list_for_customer(
        self, user_id: int | None = None, email: str | None = None
    ) -> list[Order]:
        """Orders placed by a registered user or under a guest email."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Raises ConcurrencyConflict if a new order's number is already taken.
        """
