"""Stock movements and stock signals.

A movement is an immutable fact: once written it is never updated or
deleted.  Summing the deltas of a variant's movements yields its on-hand
quantity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MovementType(Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class ReferenceType(Enum):
    ORDER = "order"
    ORDER_CANCELLED = "order_cancelled"
    RESTOCK = "restock"
    MANUAL = "manual"

    @property
    def movement_type(self) -> MovementType:
        if self is ReferenceType.ORDER:
            return MovementType.OUT
        if self is ReferenceType.MANUAL:
            return MovementType.ADJUSTMENT
        return MovementType.IN


@dataclass(frozen=True)
class StockMovement:
    variant_id: int
    quantity_delta: int  # signed: negative for stock leaving
    movement_type: MovementType
    reference_type: ReferenceType
    reference: str | None = None
    note: str | None = None
    actor_id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None


class StockSignalType(Enum):
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    RESTOCKED = "restocked"


@dataclass(frozen=True)
class StockSignal:
    """Side-channel notification for wishlist/alerting collaborators."""

    type: StockSignalType
    variant_id: int
    sku: str
    quantity: int
