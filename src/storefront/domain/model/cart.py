"""Cart lines and the identity that owns a cart."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from storefront.domain.exceptions import ValidationError

MAX_LINE_QUANTITY = 10


@dataclass
class CartLine:
    variant_id: int
    quantity: int
    added_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class CartOwner:
    """Who a cart belongs to: a registered user, or an anonymous session.

    ``session`` is the caller's session state (any mutable mapping); the
    anonymous cart lives inside it under a single key.
    """

    user_id: int | None = None
    session: MutableMapping[str, Any] | None = field(default=None, compare=False, hash=False)

    def __post_init__(self) -> None:
        if self.user_id is None and self.session is None:
            raise ValidationError("A cart owner needs a user id or a session")

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @staticmethod
    def user(user_id: int) -> CartOwner:
        return CartOwner(user_id=user_id)

    @staticmethod
    def anonymous(session: MutableMapping[str, Any]) -> CartOwner:
        return CartOwner(session=session)
