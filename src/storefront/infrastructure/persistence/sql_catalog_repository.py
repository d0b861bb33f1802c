"""SQLAlchemy implementations of ProductRepository and VariantRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import Variant
from storefront.domain.repository.catalog_repository import (
    ProductRepository,
    VariantRepository,
)
from storefront.infrastructure.persistence.orm import ProductRow, VariantRow


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: int) -> Product | None:
        row = self._session.get(ProductRow, product_id)
        return self._to_domain(row) if row else None

    def get_by_sku(self, sku: str) -> Product | None:
        row = self._session.scalars(select(ProductRow).where(ProductRow.sku == sku)).first()
        return self._to_domain(row) if row else None

    def list_all(self) -> list[Product]:
        rows = self._session.scalars(select(ProductRow).order_by(ProductRow.name))
        return [self._to_domain(row) for row in rows]

    def save(self, product: Product) -> None:
        row = self._session.get(ProductRow, product.id) if product.id is not None else None
        if row is None:
            row = ProductRow()
            self._session.add(row)
        row.sku = product.sku
        row.name = product.name
        row.regular_price = product.regular_price.amount
        row.sale_price = product.sale_price.amount if product.sale_price else None
        row.cost_price = product.cost_price.amount if product.cost_price else None
        row.currency = product.regular_price.currency
        row.is_active = product.is_active
        self._session.flush()
        product.id = row.id

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            sku=row.sku,
            name=row.name,
            regular_price=Money(row.regular_price, row.currency),
            sale_price=Money(row.sale_price, row.currency) if row.sale_price is not None else None,
            is_active=row.is_active,
            cost_price=Money(row.cost_price, row.currency) if row.cost_price is not None else None,
        )


class SqlVariantRepository(VariantRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- VariantRepository interface ------------------------------------------

    def get_by_id(self, variant_id: int) -> Variant | None:
        row = self._session.get(VariantRow, variant_id)
        return self._to_domain(row) if row else None

    def get_for_update(self, variant_id: int) -> Variant | None:
        stmt = (
            select(VariantRow)
            .where(VariantRow.id == variant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    def get_by_sku(self, sku: str) -> Variant | None:
        row = self._session.scalars(select(VariantRow).where(VariantRow.sku == sku)).first()
        return self._to_domain(row) if row else None

    def list_all(self) -> list[Variant]:
        rows = self._session.scalars(select(VariantRow).order_by(VariantRow.sku))
        return [self._to_domain(row) for row in rows]

    def list_low_stock(self) -> list[Variant]:
        stmt = (
            select(VariantRow)
            .where(
                VariantRow.is_available.is_(True),
                VariantRow.stock_quantity > 0,
                VariantRow.stock_quantity <= VariantRow.low_stock_threshold,
            )
            .order_by(VariantRow.stock_quantity, VariantRow.sku)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def list_out_of_stock(self) -> list[Variant]:
        stmt = (
            select(VariantRow)
            .where(VariantRow.stock_quantity == 0)
            .order_by(VariantRow.sku)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def save(self, variant: Variant) -> None:
        row = self._session.get(VariantRow, variant.id) if variant.id is not None else None
        if row is None:
            row = VariantRow()
            self._session.add(row)
        row.product_id = variant.product_id
        row.sku = variant.sku
        row.color = variant.color
        row.size = variant.size
        row.stock_quantity = variant.stock_quantity
        row.low_stock_threshold = variant.low_stock_threshold
        row.is_available = variant.is_available
        self._session.flush()
        variant.id = row.id

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_domain(row: VariantRow) -> Variant:
        return Variant(
            id=row.id,
            product_id=row.product_id,
            sku=row.sku,
            color=row.color,
            size=row.size,
            stock_quantity=row.stock_quantity,
            low_stock_threshold=row.low_stock_threshold,
        )
