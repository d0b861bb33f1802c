"""Application service: Show Order use case (query)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_number: str) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_number(order_number)
            if order is None:
                raise EntityNotFoundError(f"Order {order_number} not found")
            return OrderDTO.from_order(order)
