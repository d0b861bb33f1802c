"""SQLAlchemy implementation of ShippingMethodRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.domain.model.shipping import ShippingMethod
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.shipping_method_repository import (
    ShippingMethodRepository,
)
from storefront.infrastructure.persistence.orm import ShippingMethodRow


class SqlShippingMethodRepository(ShippingMethodRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, method_id: int) -> ShippingMethod | None:
        row = self._session.get(ShippingMethodRow, method_id)
        return self._to_domain(row) if row else None

    def get_by_code(self, code: str) -> ShippingMethod | None:
        stmt = select(ShippingMethodRow).where(ShippingMethodRow.code == code)
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    def list_active(self) -> list[ShippingMethod]:
        stmt = (
            select(ShippingMethodRow)
            .where(ShippingMethodRow.is_active.is_(True))
            .order_by(ShippingMethodRow.base_cost, ShippingMethodRow.code)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def save(self, method: ShippingMethod) -> None:
        row = self._session.get(ShippingMethodRow, method.id) if method.id is not None else None
        if row is None:
            row = ShippingMethodRow()
            self._session.add(row)
        row.code = method.code
        row.name = method.name
        row.base_cost = method.base_cost.amount
        row.free_shipping_threshold = (
            method.free_shipping_threshold.amount if method.free_shipping_threshold else None
        )
        row.currency = method.base_cost.currency
        row.is_active = method.is_active
        self._session.flush()
        method.id = row.id

    @staticmethod
    def _to_domain(row: ShippingMethodRow) -> ShippingMethod:
        return ShippingMethod(
            id=row.id,
            code=row.code,
            name=row.name,
            base_cost=Money(row.base_cost, row.currency),
            free_shipping_threshold=(
                Money(row.free_shipping_threshold, row.currency)
                if row.free_shipping_threshold is not None
                else None
            ),
            is_active=row.is_active,
        )
