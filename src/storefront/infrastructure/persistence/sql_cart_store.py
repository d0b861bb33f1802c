"""SQLAlchemy-backed cart for registered users, and the cart backend picker."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.domain.model.cart import CartLine, CartOwner
from storefront.domain.repository.cart_store import CartStore, CartStoreProvider
from storefront.infrastructure.persistence.orm import CartItemRow
from storefront.infrastructure.session.session_cart_store import SessionCartStore


class UserCartStore(CartStore):
    """One row per (user, variant); changes commit with the unit of work."""

    persistent = True

    def __init__(self, session: Session, user_id: int) -> None:
        self._session = session
        self._user_id = user_id

    def lines(self) -> list[CartLine]:
        stmt = (
            select(CartItemRow)
            .where(CartItemRow.user_id == self._user_id)
            .order_by(CartItemRow.added_at, CartItemRow.id)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def get(self, variant_id: int) -> CartLine | None:
        row = self._row(variant_id)
        return self._to_domain(row) if row else None

    def put(self, variant_id: int, quantity: int, now: datetime | None = None) -> CartLine:
        row = self._row(variant_id)
        if row is None:
            row = CartItemRow(
                user_id=self._user_id,
                variant_id=variant_id,
                added_at=now or datetime.now(timezone.utc),
            )
            self._session.add(row)
        row.quantity = quantity
        self._session.flush()
        return self._to_domain(row)

    def remove(self, variant_id: int) -> None:
        self._session.execute(
            delete(CartItemRow).where(
                CartItemRow.user_id == self._user_id,
                CartItemRow.variant_id == variant_id,
            )
        )

    def clear(self) -> None:
        self._session.execute(delete(CartItemRow).where(CartItemRow.user_id == self._user_id))

    def _row(self, variant_id: int) -> CartItemRow | None:
        stmt = select(CartItemRow).where(
            CartItemRow.user_id == self._user_id,
            CartItemRow.variant_id == variant_id,
        )
        return self._session.scalars(stmt).first()

    @staticmethod
    def _to_domain(row: CartItemRow) -> CartLine:
        return CartLine(variant_id=row.variant_id, quantity=row.quantity, added_at=row.added_at)


class SqlCartStoreProvider(CartStoreProvider):

    def __init__(self, session: Session) -> None:
        self._session = session

    def store_for(self, owner: CartOwner) -> CartStore:
        if owner.user_id is not None:
            return UserCartStore(self._session, owner.user_id)
        return SessionCartStore(owner.session)  # type: ignore[arg-type]
