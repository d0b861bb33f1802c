"""Cart storage abstraction.

One interface, two backends: persistent rows for registered users and an
ephemeral map inside the caller's session for anonymous visitors.  The
checkout and cart services only ever talk to ``CartStore``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.cart import CartLine, CartOwner


class CartStore(ABC):

    persistent: bool = False

    @abstractmethod
    def lines(self) -> list[CartLine]:
        """Every line in the cart, oldest first."""

    @abstractmethod
    def get(self, variant_id: int) -> CartLine | None:
        """The line for a variant, or None."""

    @abstractmethod
    def put(self, variant_id: int, quantity: int, now: datetime | None = None) -> CartLine:
        """Insert or overwrite the line for a variant."""

    @abstractmethod
    def remove(self, variant_id: int) -> None:
        """Drop the line for a variant (no-op if absent)."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every line."""


class CartStoreProvider(ABC):

    @abstractmethod
    def store_for(self, owner: CartOwner) -> CartStore:
        """Pick the backend that matches the owner."""
