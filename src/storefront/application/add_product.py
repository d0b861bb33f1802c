"""Application services: Add Product / Add Variant use cases."""

from __future__ import annotations

from storefront.application.notifications import publish_stock_signals
from storefront.config.logging import get_logger
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import DEFAULT_LOW_STOCK_THRESHOLD, Variant
from storefront.domain.port.notifier import StockNotifier
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.stock_ledger import StockLedger

logger = get_logger(__name__)


class AddProductHandler:

    def __init__(self, uow: UnitOfWork, currency: str = "EUR") -> None:
        self._uow = uow
        self._currency = currency

    def handle(
        self,
        sku: str,
        name: str,
        price: str,
        sale_price: str | None = None,
        cost_price: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not sku or not sku.strip():
            raise ValidationError("Product SKU is required")

        sku = sku.strip().upper()
        regular = Money.of(price, self._currency)
        if regular.is_zero:
            raise ValidationError("Product price must be greater than zero")

        with self._uow:
            if self._uow.products.get_by_sku(sku) is not None:
                raise ValidationError(f"Product '{sku}' already exists")

            product = Product(
                id=None,
                sku=sku,
                name=name.strip(),
                regular_price=regular,
                cost_price=Money.of(cost_price, self._currency) if cost_price is not None else None,
            )
            if sale_price is not None:
                product.update_price(regular, Money.of(sale_price, self._currency))
            self._uow.products.save(product)
            self._uow.commit()

        logger.info("product_added", sku=product.sku, product_id=product.id)
        return product


class AddVariantHandler:
    """Create a variant and book its opening stock through the ledger."""

    def __init__(self, uow: UnitOfWork, stock_notifier: StockNotifier | None = None) -> None:
        self._uow = uow
        self._stock_notifier = stock_notifier

    def handle(
        self,
        product_sku: str,
        size: str,
        color: str | None = None,
        initial_stock: int = 0,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        sku: str | None = None,
    ) -> Variant:
        if not size or not size.strip():
            raise ValidationError("Variant size is required")
        if initial_stock < 0:
            raise ValidationError("Initial stock cannot be negative")

        with self._uow:
            product = self._uow.products.get_by_sku(product_sku.strip().upper())
            if product is None:
                raise EntityNotFoundError(f"Product '{product_sku}' not found")

            variant_sku = sku or Variant.build_sku(product.sku, color, size.strip())
            if self._uow.variants.get_by_sku(variant_sku) is not None:
                raise ValidationError(f"Variant '{variant_sku}' already exists")

            variant = Variant(
                id=None,
                product_id=product.id,  # type: ignore[arg-type]
                sku=variant_sku,
                color=color,
                size=size.strip(),
                low_stock_threshold=low_stock_threshold,
            )
            self._uow.variants.save(variant)

            ledger = StockLedger(self._uow.variants, self._uow.movements)
            if initial_stock:
                ledger.restock(variant.id, initial_stock, note="Opening stock")  # type: ignore[arg-type]
                variant = self._uow.variants.get_by_id(variant.id)  # type: ignore[arg-type, assignment]
            self._uow.commit()
            signals = ledger.drain_signals()

        logger.info("variant_added", sku=variant.sku, stock=variant.stock_quantity)
        publish_stock_signals(self._stock_notifier, signals)
        return variant
