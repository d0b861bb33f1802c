"""Anonymous cart kept inside the caller's session state.

Layout under ``session["cart"]``::

    {"<variant id>": {"quantity": 2, "added_at": "2024-05-01T10:00:00+00:00"}}

Nothing here takes part in a database transaction: callers clear it
only after their unit of work has committed.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from datetime import datetime, timezone
from typing import Any

from storefront.domain.model.cart import CartLine
from storefront.domain.repository.cart_store import CartStore

SESSION_KEY = "cart"


class SessionCartStore(CartStore):

    persistent = False

    def __init__(self, session: MutableMapping[str, Any], key: str = SESSION_KEY) -> None:
        self._session = session
        self._key = key

    def lines(self) -> list[CartLine]:
        lines = [self._to_line(variant_id, raw) for variant_id, raw in self._cart().items()]
        return sorted(lines, key=lambda line: (line.added_at, line.variant_id))

    def get(self, variant_id: int) -> CartLine | None:
        raw = self._cart().get(str(variant_id))
        return self._to_line(str(variant_id), raw) if raw else None

    def put(self, variant_id: int, quantity: int, now: datetime | None = None) -> CartLine:
        cart = self._cart()
        existing = cart.get(str(variant_id))
        added_at = (
            existing["added_at"]
            if existing
            else (now or datetime.now(timezone.utc)).isoformat()
        )
        cart[str(variant_id)] = {"quantity": quantity, "added_at": added_at}
        # Reassign so session backends that track top-level writes see the change.
        self._session[self._key] = cart
        return self._to_line(str(variant_id), cart[str(variant_id)])

    def remove(self, variant_id: int) -> None:
        cart = self._cart()
        if cart.pop(str(variant_id), None) is not None:
            self._session[self._key] = cart

    def clear(self) -> None:
        self._session.pop(self._key, None)

    def _cart(self) -> dict[str, dict[str, Any]]:
        return dict(self._session.get(self._key) or {})

    @staticmethod
    def _to_line(variant_id: str, raw: dict[str, Any]) -> CartLine:
        added_at = datetime.fromisoformat(raw["added_at"])
        if added_at.tzinfo is None:
            added_at = added_at.replace(tzinfo=timezone.utc)
        return CartLine(variant_id=int(variant_id), quantity=int(raw["quantity"]), added_at=added_at)
