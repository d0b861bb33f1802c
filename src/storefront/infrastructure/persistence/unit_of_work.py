"""SQLAlchemy unit of work: one session, one transaction per ``with`` block."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from storefront.config.logging import get_logger
from storefront.domain.exceptions import ConcurrencyConflict
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.infrastructure.persistence.sql_cart_store import SqlCartStoreProvider
from storefront.infrastructure.persistence.sql_catalog_repository import (
    SqlProductRepository,
    SqlVariantRepository,
)
from storefront.infrastructure.persistence.sql_order_repository import SqlOrderRepository
from storefront.infrastructure.persistence.sql_shipping_method_repository import (
    SqlShippingMethodRepository,
)
from storefront.infrastructure.persistence.sql_stock_movement_repository import (
    SqlStockMovementRepository,
)

logger = get_logger(__name__)

_LOCK_ERRORS = ("database is locked", "lock wait timeout", "deadlock", "could not obtain lock")


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> UnitOfWork:
        self._session = self._session_factory()
        self.products = SqlProductRepository(self._session)
        self.variants = SqlVariantRepository(self._session)
        self.movements = SqlStockMovementRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        self.shipping_methods = SqlShippingMethodRepository(self._session)
        self.carts = SqlCartStoreProvider(self._session)
        return super().__enter__()

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            if self._session is not None:
                self._session.close()
            self._session = None
        if isinstance(exc, OperationalError) and _is_lock_error(exc):
            logger.warning("lock_timeout", error=str(exc.orig))
            raise ConcurrencyConflict("Timed out waiting for a database lock") from exc

    def commit(self) -> None:
        try:
            self._session.commit()  # type: ignore[union-attr]
        except OperationalError as exc:
            if _is_lock_error(exc):
                raise ConcurrencyConflict("Timed out waiting for a database lock") from exc
            raise

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()


def _is_lock_error(exc: OperationalError) -> bool:
    message = str(exc.orig).lower()
    return any(marker in message for marker in _LOCK_ERRORS)
