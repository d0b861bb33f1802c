"""Domain service: Stock Ledger.

Every change to a variant's on-hand quantity goes through ``adjust``,
which (1) takes the variant's row lock, (2) applies the delta with a
zero floor, (3) appends the matching immutable movement and (4) queues
stock signals.  Signals are only handed out through ``drain_signals``
so the caller can publish them after its transaction commits.

The ledger must be used inside an open unit of work; the lock it takes
is held until that unit of work ends.
"""

from __future__ import annotations

from datetime import datetime

from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.stock_movement import (
    ReferenceType,
    StockMovement,
    StockSignal,
    StockSignalType,
)
from storefront.domain.model.variant import StockChange, Variant
from storefront.domain.repository.catalog_repository import VariantRepository
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class StockLedger:

    def __init__(
        self,
        variant_repo: VariantRepository,
        movement_repo: StockMovementRepository,
    ) -> None:
        self._variant_repo = variant_repo
        self._movement_repo = movement_repo
        self._signals: list[StockSignal] = []

    # --- Writes -----------------------------------------------------------------

    def adjust(
        self,
        variant_id: int,
        delta: int,
        reference_type: ReferenceType,
        reference: str | None = None,
        actor_id: int | None = None,
        note: str | None = None,
    ) -> int:
        """Apply *delta* to a variant's on-hand stock; returns the new quantity.

        A decrement past zero is clamped to zero.  The recorded movement
        carries the delta actually applied, so on-hand always equals the
        sum of the variant's movements.
        """
        variant = self._lock(variant_id)
        change = variant.apply_delta(delta)
        self._variant_repo.save(variant)

        if change.clamped:
            logger.warning(
                "stock_adjustment_clamped",
                variant_id=variant_id,
                requested_delta=delta,
                applied_delta=change.applied_delta,
                reference=reference,
            )

        if change.applied_delta != 0:
            self._movement_repo.add(
                StockMovement(
                    variant_id=variant_id,
                    quantity_delta=change.applied_delta,
                    movement_type=reference_type.movement_type,
                    reference_type=reference_type,
                    reference=reference,
                    note=note,
                    actor_id=actor_id,
                )
            )

        self._queue_signals(variant, change)

        logger.info(
            "stock_adjusted",
            variant_id=variant_id,
            sku=variant.sku,
            previous=change.previous_quantity,
            new=change.new_quantity,
            reference_type=reference_type.value,
            reference=reference,
        )
        return change.new_quantity

    def restock(
        self,
        variant_id: int,
        quantity: int,
        note: str | None = None,
        actor_id: int | None = None,
    ) -> int:
        """Receive *quantity* new units into stock."""
        if quantity <= 0:
            raise ValidationError("Restock quantity must be positive")
        return self.adjust(
            variant_id, quantity, ReferenceType.RESTOCK, note=note, actor_id=actor_id
        )

    def set_quantity(
        self,
        variant_id: int,
        new_quantity: int,
        reason: str | None = None,
        actor_id: int | None = None,
    ) -> int:
        """Manual correction to an absolute count (e.g. after a stock take)."""
        if new_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        variant = self._lock(variant_id)
        difference = new_quantity - variant.stock_quantity
        if difference == 0:
            return variant.stock_quantity
        return self.adjust(
            variant_id, difference, ReferenceType.MANUAL, actor_id=actor_id, note=reason
        )

    def reconcile(self, variant_id: int, repair: bool = False) -> int:
        """Difference between on-hand and the movement sum (0 when consistent).

        With ``repair=True`` an adjustment movement is appended so the log
        agrees with the on-hand counter again.
        """
        variant = self._lock(variant_id)
        discrepancy = variant.stock_quantity - self._movement_repo.sum_for_variant(variant_id)
        if discrepancy and repair:
            self._movement_repo.add(
                StockMovement(
                    variant_id=variant_id,
                    quantity_delta=discrepancy,
                    movement_type=ReferenceType.MANUAL.movement_type,
                    reference_type=ReferenceType.MANUAL,
                    note="Reconciliation with on-hand quantity",
                )
            )
            logger.warning(
                "stock_ledger_reconciled", variant_id=variant_id, discrepancy=discrepancy
            )
        return discrepancy

    # --- Reads ------------------------------------------------------------------

    def history(
        self,
        variant_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = DEFAULT_HISTORY_LIMIT,
    ) -> list[StockMovement]:
        if self._variant_repo.get_by_id(variant_id) is None:
            raise EntityNotFoundError(f"Variant #{variant_id} not found")
        return self._movement_repo.list_for_variant(
            variant_id, since=since, until=until, limit=limit
        )

    def drain_signals(self) -> list[StockSignal]:
        """Hand out (and forget) the signals queued so far."""
        signals, self._signals = self._signals, []
        return signals

    # --- Internal helpers -------------------------------------------------------

    def _lock(self, variant_id: int) -> Variant:
        variant = self._variant_repo.get_for_update(variant_id)
        if variant is None:
            raise EntityNotFoundError(f"Variant #{variant_id} not found")
        return variant

    def _queue_signals(self, variant: Variant, change: StockChange) -> None:
        new, previous = change.new_quantity, change.previous_quantity
        if new == previous:
            return

        if new == 0:
            self._signal(StockSignalType.OUT_OF_STOCK, variant)
            return
        if previous == 0:
            self._signal(StockSignalType.RESTOCKED, variant)
        if variant.is_low_stock and (new < previous or previous == 0):
            self._signal(StockSignalType.LOW_STOCK, variant)

    def _signal(self, signal_type: StockSignalType, variant: Variant) -> None:
        self._signals.append(
            StockSignal(
                type=signal_type,
                variant_id=variant.id,  # type: ignore[arg-type]
                sku=variant.sku,
                quantity=variant.stock_quantity,
            )
        )
