"""Application services: manual stock operations (restock, stock take, reconcile)."""

from __future__ import annotations

from storefront.application.notifications import publish_stock_signals
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.port.notifier import StockNotifier
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.stock_ledger import StockLedger

logger = get_logger(__name__)


class AdjustStockHandler:

    def __init__(self, uow: UnitOfWork, stock_notifier: StockNotifier | None = None) -> None:
        self._uow = uow
        self._stock_notifier = stock_notifier

    def restock(
        self,
        sku: str,
        quantity: int,
        note: str | None = None,
        actor_id: int | None = None,
    ) -> int:
        """Receive goods; returns the new on-hand quantity."""
        with self._uow:
            ledger = self._ledger()
            new_quantity = ledger.restock(self._variant_id(sku), quantity, note, actor_id)
            self._uow.commit()
            signals = ledger.drain_signals()
        publish_stock_signals(self._stock_notifier, signals)
        return new_quantity

    def set_quantity(
        self,
        sku: str,
        quantity: int,
        reason: str | None = None,
        actor_id: int | None = None,
    ) -> int:
        """Overwrite the on-hand count after a stock take."""
        with self._uow:
            ledger = self._ledger()
            new_quantity = ledger.set_quantity(self._variant_id(sku), quantity, reason, actor_id)
            self._uow.commit()
            signals = ledger.drain_signals()
        publish_stock_signals(self._stock_notifier, signals)
        return new_quantity

    def reconcile(self, sku: str | None = None, repair: bool = False) -> dict[str, int]:
        """Discrepancies between on-hand and movement sums, keyed by SKU.

        Checks one variant, or every variant when *sku* is None.  Only
        non-zero discrepancies are returned.
        """
        with self._uow:
            ledger = self._ledger()
            if sku is not None:
                variant_ids = {sku: self._variant_id(sku)}
            else:
                variant_ids = {v.sku: v.id for v in self._uow.variants.list_all()}

            discrepancies: dict[str, int] = {}
            for variant_sku, variant_id in sorted(variant_ids.items(), key=lambda kv: kv[1]):
                discrepancy = ledger.reconcile(variant_id, repair=repair)  # type: ignore[arg-type]
                if discrepancy:
                    discrepancies[variant_sku] = discrepancy
            if repair:
                self._uow.commit()

        if discrepancies:
            logger.warning("stock_discrepancies_found", count=len(discrepancies), repaired=repair)
        return discrepancies

    def _ledger(self) -> StockLedger:
        return StockLedger(self._uow.variants, self._uow.movements)

    def _variant_id(self, sku: str) -> int:
        variant = self._uow.variants.get_by_sku(sku)
        if variant is None:
            raise EntityNotFoundError(f"Variant '{sku}' not found")
        return variant.id  # type: ignore[return-value]
