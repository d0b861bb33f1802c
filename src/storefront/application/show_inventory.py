"""Application service: Show Inventory use cases (queries)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import Variant
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.reservation_calculator import ReservationCalculator
from storefront.domain.service.stock_ledger import DEFAULT_HISTORY_LIMIT, StockLedger


@dataclass(frozen=True)
class StockLevelDTO:
    sku: str
    product_name: str
    color: str | None
    size: str
    on_hand: int
    reserved: int
    available: int
    status: str


@dataclass(frozen=True)
class MovementDTO:
    created_at: str
    delta: int
    movement_type: str
    reference_type: str
    reference: str | None
    note: str | None


class ShowInventoryHandler:

    def __init__(self, uow: UnitOfWork, currency: str = "EUR") -> None:
        self._uow = uow
        self._currency = currency

    def handle(self) -> list[StockLevelDTO]:
        """On-hand, reserved and available units for every variant."""
        with self._uow:
            return self._levels(self._uow.variants.list_all())

    def low_stock(self) -> list[StockLevelDTO]:
        with self._uow:
            return self._levels(self._uow.variants.list_low_stock())

    def out_of_stock(self) -> list[StockLevelDTO]:
        with self._uow:
            return self._levels(self._uow.variants.list_out_of_stock())

    def value(self) -> Money:
        """Worth of the stock on hand across active products.

        Each unit counts at its product's cost price, or at half the
        regular price where no cost was recorded.
        """
        total = Money.zero(self._currency)
        with self._uow:
            products = {p.id: p for p in self._uow.products.list_all() if p.is_active}
            for variant in self._uow.variants.list_all():
                product = products.get(variant.product_id)
                if product is None or variant.stock_quantity <= 0:
                    continue
                total = total + product.valuation_price * variant.stock_quantity
        return total

    def history(
        self,
        sku: str,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = DEFAULT_HISTORY_LIMIT,
    ) -> list[MovementDTO]:
        with self._uow:
            variant = self._uow.variants.get_by_sku(sku)
            if variant is None:
                raise EntityNotFoundError(f"Variant '{sku}' not found")
            ledger = StockLedger(self._uow.variants, self._uow.movements)
            movements = ledger.history(
                variant.id, since=since, until=until, limit=limit  # type: ignore[arg-type]
            )
            return [
                MovementDTO(
                    created_at=m.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                    delta=m.quantity_delta,
                    movement_type=m.movement_type.value,
                    reference_type=m.reference_type.value,
                    reference=m.reference,
                    note=m.note,
                )
                for m in movements
            ]

    def _levels(self, variants: list[Variant]) -> list[StockLevelDTO]:
        calculator = ReservationCalculator(
            self._uow.variants, self._uow.products, self._uow.orders
        )
        levels: list[StockLevelDTO] = []
        for variant in variants:
            product = self._uow.products.get_by_id(variant.product_id)
            levels.append(
                StockLevelDTO(
                    sku=variant.sku,
                    product_name=product.name if product else "",
                    color=variant.color,
                    size=variant.size,
                    on_hand=variant.stock_quantity,
                    reserved=calculator.reserved_quantity(variant.id),  # type: ignore[arg-type]
                    available=calculator.available_quantity(variant.id),  # type: ignore[arg-type]
                    status=variant.stock_status.value,
                )
            )
        return levels
