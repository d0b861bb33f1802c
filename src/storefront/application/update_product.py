"""Application service: Update Product use case."""

from __future__ import annotations

from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class UpdateProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        sku: str,
        price: str | None = None,
        sale_price: str | None = None,
        clear_sale: bool = False,
        active: bool | None = None,
        cost_price: str | None = None,
    ) -> Product:
        """Change price and/or catalog visibility.

        This does NOT affect any existing orders; they captured a
        price snapshot at creation time.
        """
        with self._uow:
            product = self._uow.products.get_by_sku(sku.strip().upper())
            if product is None:
                raise EntityNotFoundError(f"Product '{sku}' not found")

            currency = product.regular_price.currency
            if price is not None or sale_price is not None or clear_sale:
                regular = Money.of(price, currency) if price is not None else product.regular_price
                if sale_price is not None:
                    sale = Money.of(sale_price, currency)
                elif clear_sale:
                    sale = None
                else:
                    sale = product.sale_price
                product.update_price(regular, sale)

            if cost_price is not None:
                product.cost_price = Money.of(cost_price, currency)

            if active is True:
                product.activate()
            elif active is False:
                product.deactivate()

            self._uow.products.save(product)
            self._uow.commit()

        logger.info(
            "product_updated",
            sku=product.sku,
            price=str(product.current_price),
            active=product.is_active,
        )
        return product
