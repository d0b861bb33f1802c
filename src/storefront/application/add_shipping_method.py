"""Application service: Add Shipping Method use case."""

from __future__ import annotations

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.shipping import ShippingMethod
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWork


class AddShippingMethodHandler:

    def __init__(self, uow: UnitOfWork, currency: str = "EUR") -> None:
        self._uow = uow
        self._currency = currency

    def handle(
        self,
        code: str,
        name: str,
        base_cost: str,
        free_shipping_threshold: str | None = None,
    ) -> ShippingMethod:
        if not code or not code.strip():
            raise ValidationError("Shipping method code is required")

        with self._uow:
            if self._uow.shipping_methods.get_by_code(code.strip()) is not None:
                raise ValidationError(f"Shipping method '{code}' already exists")
            method = ShippingMethod(
                id=None,
                code=code.strip(),
                name=name.strip() or code.strip(),
                base_cost=Money.of(base_cost, self._currency),
                free_shipping_threshold=(
                    Money.of(free_shipping_threshold, self._currency)
                    if free_shipping_threshold is not None
                    else None
                ),
            )
            self._uow.shipping_methods.save(method)
            self._uow.commit()
        return method


class ListShippingMethodsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[ShippingMethod]:
        with self._uow:
            return self._uow.shipping_methods.list_active()
