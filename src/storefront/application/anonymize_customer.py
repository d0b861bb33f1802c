"""Application service: erase a customer's personal data from their orders."""

from __future__ import annotations

from storefront.config.logging import get_logger
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.cart import CartOwner
from storefront.domain.repository.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class AnonymizeCustomerHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user_id: int | None = None, email: str | None = None) -> int:
        """Anonymize every order of a user or guest email; returns how many were touched.

        Totals and line items are kept for bookkeeping.
        """
        if user_id is None and not email:
            raise ValidationError("Either a user id or an email is required")

        with self._uow:
            orders = self._uow.orders.list_for_customer(user_id=user_id, email=email)
            for order in orders:
                order.anonymize()
                self._uow.orders.save(order)
            if user_id is not None:
                self._uow.carts.store_for(CartOwner.user(user_id)).clear()
            self._uow.commit()

        logger.info("customer_anonymized", orders=len(orders), by_user=user_id is not None)
        return len(orders)
