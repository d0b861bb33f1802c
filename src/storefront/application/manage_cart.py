"""Application service: cart operations.

Works the same for registered users and anonymous visitors: the unit of
work's cart provider hands back the matching ``CartStore`` backend and
everything below only talks to that interface.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from storefront.application.dto import CartDTO, CartLineDTO
from storefront.config.logging import get_logger
from storefront.domain.exceptions import (
    AvailabilityError,
    EntityNotFoundError,
    ValidationError,
)
from storefront.domain.model.cart import MAX_LINE_QUANTITY, CartOwner
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.cart_store import CartStore
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.reservation_calculator import ReservationCalculator

logger = get_logger(__name__)

DEFAULT_RETENTION = timedelta(days=7)


class CartService:

    def __init__(
        self,
        uow: UnitOfWork,
        max_line_quantity: int = MAX_LINE_QUANTITY,
        retention: timedelta = DEFAULT_RETENTION,
        currency: str = "EUR",
    ) -> None:
        self._uow = uow
        self._max_line_quantity = max_line_quantity
        self._retention = retention
        self._currency = currency

    def add_item(self, owner: CartOwner, variant_id: int, quantity: int) -> CartDTO:
        """Add units of a variant; an existing line is incremented, up to the line maximum."""
        self._validate_quantity(quantity, minimum=1)
        with self._staged(owner) as owner, self._uow:
            calculator = self._calculator()
            self._require_variant(variant_id)
            if not calculator.check_availability(variant_id, 1):
                raise AvailabilityError(f"Variant #{variant_id} is out of stock")

            store = self._uow.carts.store_for(owner)
            existing = store.get(variant_id)
            combined = quantity + (existing.quantity if existing else 0)
            ceiling = calculator.max_cart_quantity(variant_id)
            if combined > ceiling:
                logger.info(
                    "cart_quantity_capped",
                    variant_id=variant_id,
                    requested=combined,
                    ceiling=ceiling,
                )
                combined = ceiling
            store.put(variant_id, combined)

            cart = build_cart_dto(self._uow, store, calculator, self._currency)
            self._uow.commit()
        return cart

    def update_quantity(self, owner: CartOwner, variant_id: int, quantity: int) -> CartDTO:
        """Set a line to *quantity*; 0 removes the line."""
        self._validate_quantity(quantity, minimum=0)
        with self._staged(owner) as owner, self._uow:
            calculator = self._calculator()
            store = self._uow.carts.store_for(owner)
            if store.get(variant_id) is None:
                raise EntityNotFoundError(f"Variant #{variant_id} is not in the cart")

            if quantity == 0:
                store.remove(variant_id)
            else:
                ceiling = calculator.max_cart_quantity(variant_id)
                if quantity > ceiling:
                    raise AvailabilityError(
                        f"Only {ceiling} of variant #{variant_id} can be ordered"
                    )
                store.put(variant_id, quantity)

            cart = build_cart_dto(self._uow, store, calculator, self._currency)
            self._uow.commit()
        return cart

    def remove_item(self, owner: CartOwner, variant_id: int) -> CartDTO:
        with self._staged(owner) as owner, self._uow:
            store = self._uow.carts.store_for(owner)
            store.remove(variant_id)
            cart = build_cart_dto(self._uow, store, self._calculator(), self._currency)
            self._uow.commit()
        return cart

    def clear(self, owner: CartOwner) -> None:
        with self._staged(owner) as owner, self._uow:
            self._uow.carts.store_for(owner).clear()
            self._uow.commit()

    def list_items(self, owner: CartOwner) -> CartDTO:
        with self._uow:
            store = self._uow.carts.store_for(owner)
            return build_cart_dto(self._uow, store, self._calculator(), self._currency)

    def merge_on_login(self, session: MutableMapping[str, Any], user_id: int) -> CartDTO:
        """Fold an anonymous session cart into the user's persistent cart.

        Quantities for the same variant are summed and capped at the line
        maximum.  All user rows are written in one transaction; the
        session cart is emptied only once that transaction has committed.
        """
        anonymous_owner = CartOwner.anonymous(session)
        with self._uow:
            calculator = self._calculator()
            anonymous = self._uow.carts.store_for(anonymous_owner)
            user_cart = self._uow.carts.store_for(CartOwner.user(user_id))

            for line in anonymous.lines():
                if self._uow.variants.get_by_id(line.variant_id) is None:
                    logger.info("cart_merge_skipped_unknown_variant", variant_id=line.variant_id)
                    continue
                existing = user_cart.get(line.variant_id)
                combined = line.quantity + (existing.quantity if existing else 0)
                combined = min(combined, calculator.max_cart_quantity(line.variant_id))
                if combined <= 0:
                    logger.info("cart_merge_skipped_unavailable", variant_id=line.variant_id)
                    continue
                user_cart.put(line.variant_id, combined)

            cart = build_cart_dto(self._uow, user_cart, calculator, self._currency)
            self._uow.commit()

        anonymous.clear()
        logger.info("cart_merged", user_id=user_id, lines=len(cart.lines))
        return cart

    def purge_stale(self, owner: CartOwner, now: datetime | None = None) -> int:
        """Drop lines added more than the retention window ago; returns how many."""
        cutoff = (now or datetime.now(timezone.utc)) - self._retention
        with self._staged(owner) as owner, self._uow:
            store = self._uow.carts.store_for(owner)
            stale = [line for line in store.lines() if line.added_at < cutoff]
            for line in stale:
                store.remove(line.variant_id)
            self._uow.commit()
        return len(stale)

    # --- Internal helpers -----------------------------------------------------

    @contextmanager
    def _staged(self, owner: CartOwner) -> Iterator[CartOwner]:
        """Edit an anonymous cart on a copy of the session.

        The copy is written back only when the block exits cleanly, i.e.
        after the unit of work committed; a failure leaves the caller's
        session untouched.
        """
        if owner.is_authenticated:
            yield owner
            return
        session = owner.session
        staged: dict[str, Any] = dict(session)
        yield CartOwner.anonymous(staged)
        for key in set(session) - set(staged):
            del session[key]
        session.update(staged)

    def _calculator(self) -> ReservationCalculator:
        return ReservationCalculator(
            self._uow.variants,
            self._uow.products,
            self._uow.orders,
            max_line_quantity=self._max_line_quantity,
        )

    def _require_variant(self, variant_id: int) -> None:
        if self._uow.variants.get_by_id(variant_id) is None:
            raise EntityNotFoundError(f"Variant #{variant_id} not found")

    def _validate_quantity(self, quantity: int, minimum: int) -> None:
        if not minimum <= quantity <= self._max_line_quantity:
            raise ValidationError(
                f"Quantity must be between {minimum} and {self._max_line_quantity}"
            )


def build_cart_dto(
    uow: UnitOfWork,
    store: CartStore,
    calculator: ReservationCalculator,
    currency: str = "EUR",
) -> CartDTO:
    """Price every cart line at the current catalog price."""
    lines: list[CartLineDTO] = []
    subtotal = Money.zero(currency)
    for line in store.lines():
        variant = uow.variants.get_by_id(line.variant_id)
        if variant is None:
            continue
        product = uow.products.get_by_id(variant.product_id)
        if product is None:
            continue
        line_total = product.current_price * line.quantity
        subtotal = subtotal + line_total
        lines.append(
            CartLineDTO(
                variant_id=line.variant_id,
                sku=variant.sku,
                product_name=product.name,
                quantity=line.quantity,
                max_quantity=calculator.max_cart_quantity(line.variant_id),
                unit_price=str(product.current_price),
                line_total=str(line_total),
                is_available=calculator.check_availability(line.variant_id, line.quantity),
            )
        )
    return CartDTO(
        lines=lines,
        item_count=sum(line.quantity for line in lines),
        subtotal=str(subtotal),
    )
