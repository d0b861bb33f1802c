"""Outbound notification ports.

Both are fire-and-forget: callers publish after their transaction has
committed and log (never raise) delivery failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order
from storefront.domain.model.stock_movement import StockSignal


class StockNotifier(ABC):

    @abstractmethod
    def publish(self, signal: StockSignal) -> None:
        """Tell wishlist/alerting collaborators about a stock level change."""


class OrderNotifier(ABC):

    @abstractmethod
    def order_confirmed(self, order: Order) -> None:
        """Send the order confirmation (e-mail or similar)."""
