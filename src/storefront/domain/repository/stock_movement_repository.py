"""Abstract repository for the append-only stock movement log."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.stock_movement import StockMovement


class StockMovementRepository(ABC):

    @abstractmethod
    def add(self, movement: StockMovement) -> StockMovement:
        """Append a movement; returns it with its ``id`` assigned."""

    @abstractmethod
    def list_for_variant(
        self,
        variant_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StockMovement]:
        """Movements of one variant, newest first."""

    @abstractmethod
    def sum_for_variant(self, variant_id: int) -> int:
        """Sum of all deltas recorded for a variant (0 when none)."""
