"""SQLAlchemy implementation of the stock movement log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.domain.model.stock_movement import (
    MovementType,
    ReferenceType,
    StockMovement,
)
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)
from storefront.infrastructure.persistence.orm import StockMovementRow


class SqlStockMovementRepository(StockMovementRepository):
    """Insert-only: rows are never updated or deleted."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, movement: StockMovement) -> StockMovement:
        row = StockMovementRow(
            variant_id=movement.variant_id,
            quantity_delta=movement.quantity_delta,
            movement_type=movement.movement_type.value,
            reference_type=movement.reference_type.value,
            reference=movement.reference,
            note=movement.note,
            actor_id=movement.actor_id,
            created_at=movement.created_at,
        )
        self._session.add(row)
        self._session.flush()
        return self._to_domain(row)

    def list_for_variant(
        self,
        variant_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StockMovement]:
        stmt = select(StockMovementRow).where(StockMovementRow.variant_id == variant_id)
        if since is not None:
            stmt = stmt.where(StockMovementRow.created_at >= since)
        if until is not None:
            stmt = stmt.where(StockMovementRow.created_at <= until)
        stmt = stmt.order_by(StockMovementRow.created_at.desc(), StockMovementRow.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def sum_for_variant(self, variant_id: int) -> int:
        stmt = select(func.coalesce(func.sum(StockMovementRow.quantity_delta), 0)).where(
            StockMovementRow.variant_id == variant_id
        )
        return int(self._session.scalar(stmt) or 0)

    @staticmethod
    def _to_domain(row: StockMovementRow) -> StockMovement:
        return StockMovement(
            id=row.id,
            variant_id=row.variant_id,
            quantity_delta=row.quantity_delta,
            movement_type=MovementType(row.movement_type),
            reference_type=ReferenceType(row.reference_type),
            reference=row.reference,
            note=row.note,
            actor_id=row.actor_id,
            created_at=row.created_at,
        )
