"""Application service: expire unpaid pending orders.

Each stale order is cancelled in its own unit of work so one order that
changed state in the meantime (paid at the last second, say) does not
hold back the rest of the sweep.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from storefront.application.cancel_order import cancel_with_restock
from storefront.config.logging import get_logger
from storefront.domain.exceptions import StateError
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.stock_ledger import StockLedger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = timedelta(hours=24)
EXPIRY_REASON = "Payment not received in time"


class ExpirePendingOrdersHandler:

    def __init__(self, uow: UnitOfWork, timeout: timedelta = DEFAULT_TIMEOUT) -> None:
        self._uow = uow
        self._timeout = timeout

    def handle(self, now: datetime | None = None) -> list[str]:
        """Cancel every pending, unpaid order older than the timeout; returns their numbers."""
        now = now or datetime.now(timezone.utc)
        with self._uow:
            candidates = [
                order.number
                for order in self._uow.orders.list_expired_pending(now - self._timeout)
            ]

        expired: list[str] = []
        for number in candidates:
            try:
                self._expire(number, now)
            except StateError as exc:
                logger.info("order_expiry_skipped", order_number=number, reason=str(exc))
                continue
            expired.append(number)

        logger.info("pending_orders_expired", count=len(expired), checked=len(candidates))
        return expired

    def _expire(self, number: str, now: datetime) -> None:
        with self._uow:
            order = self._uow.orders.get_by_number_for_update(number)
            if order is None or not order.is_expired(now, self._timeout):
                raise StateError(f"Order {number} is no longer awaiting payment")
            cancel_with_restock(
                order,
                StockLedger(self._uow.variants, self._uow.movements),
                EXPIRY_REASON,
                now,
            )
            self._uow.orders.save(order)
            self._uow.commit()
        logger.info("order_expired", order_number=number)
