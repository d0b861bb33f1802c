"""Application service: Show Catalog use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class ProductDTO:
    id: int
    sku: str
    name: str
    price: str
    regular_price: str
    on_sale: bool
    active: bool
    variants: list[str]


class ShowCatalogHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[ProductDTO]:
        with self._uow:
            variants_by_product: dict[int, list[str]] = {}
            for variant in self._uow.variants.list_all():
                variants_by_product.setdefault(variant.product_id, []).append(variant.sku)
            return [
                ProductDTO(
                    id=product.id,  # type: ignore[arg-type]
                    sku=product.sku,
                    name=product.name,
                    price=str(product.current_price),
                    regular_price=str(product.regular_price),
                    on_sale=product.is_on_sale,
                    active=product.is_active,
                    variants=variants_by_product.get(product.id, []),  # type: ignore[arg-type]
                )
                for product in self._uow.products.list_all()
            ]
