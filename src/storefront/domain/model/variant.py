"""Variant aggregate -- a purchasable SKU (product x color x size).

Each variant carries its own on-hand stock counter.  The counter is a
cached value: the append-only movement log is the audit trail it must
always agree with, so it is only ever changed through ``apply_delta``
(called by the stock ledger, which records the matching movement).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront.domain.exceptions import ValidationError

DEFAULT_LOW_STOCK_THRESHOLD = 5


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


@dataclass(frozen=True)
class StockChange:
    """Outcome of one ``apply_delta`` call."""

    previous_quantity: int
    new_quantity: int
    requested_delta: int

    @property
    def applied_delta(self) -> int:
        return self.new_quantity - self.previous_quantity

    @property
    def clamped(self) -> bool:
        return self.applied_delta != self.requested_delta


@dataclass
class Variant:
    """Aggregate root for per-SKU stock.

    Invariants:
    - ``stock_quantity`` is never negative
    - ``is_available`` is True exactly when ``stock_quantity`` > 0
    """

    id: int | None
    product_id: int
    sku: str
    color: str | None
    size: str
    stock_quantity: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    is_available: bool = False

    def __post_init__(self) -> None:
        if self.stock_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        if self.low_stock_threshold < 0:
            raise ValidationError("Low-stock threshold cannot be negative")
        self.is_available = self.stock_quantity > 0

    @staticmethod
    def build_sku(product_sku: str, color: str | None, size: str) -> str:
        """``<product sku>-<color code>-<size>``; color code ``NC`` when colorless."""
        color_code = color[:2].upper() if color else "NC"
        return f"{product_sku}-{color_code}-{size}"

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock_quantity <= self.low_stock_threshold

    @property
    def stock_status(self) -> StockStatus:
        if self.stock_quantity <= 0:
            return StockStatus.OUT_OF_STOCK
        if self.is_low_stock:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    @property
    def display_name(self) -> str:
        parts = [self.sku]
        if self.color:
            parts.append(self.color)
        parts.append(f"Size {self.size}")
        return " - ".join(parts)

    def apply_delta(self, delta: int) -> StockChange:
        """Change on-hand stock by *delta*, clamping at zero.

        Returns the change actually applied; callers must record
        ``applied_delta`` (not *delta*) in the movement log.
        """
        if delta == 0:
            raise ValidationError("Stock adjustment must not be zero")
        previous = self.stock_quantity
        self.stock_quantity = max(0, previous + delta)
        self.is_available = self.stock_quantity > 0
        return StockChange(
            previous_quantity=previous,
            new_quantity=self.stock_quantity,
            requested_delta=delta,
        )
