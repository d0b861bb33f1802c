"""Integration tests for catalog, shipping and manual stock handlers."""

import pytest

from storefront.application.add_product import AddProductHandler, AddVariantHandler
from storefront.application.add_shipping_method import (
    AddShippingMethodHandler,
    ListShippingMethodsHandler,
)
from storefront.application.adjust_stock import AdjustStockHandler
from storefront.application.place_order import PlaceOrderHandler
from storefront.application.show_catalog import ShowCatalogHandler
from storefront.application.show_inventory import ShowInventoryHandler
from storefront.application.update_product import UpdateProductHandler
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.cart import CartOwner
from storefront.domain.model.stock_movement import ReferenceType, StockSignalType
from storefront.domain.model.value_objects import Money
from tests.fakes import (
    FakePaymentGateway,
    FakeUnitOfWork,
    RecordingStockNotifier,
    add_product,
    add_shipping_method,
    add_variant,
    checkout_request,
)


class TestAddProduct:

    def test_normalizes_sku(self):
        uow = FakeUnitOfWork()
        product = AddProductHandler(uow).handle(" shirt-01 ", "Linen Shirt", "49.90")
        assert product.sku == "SHIRT-01"
        assert uow.products.get_by_sku("SHIRT-01") is not None

    def test_duplicate_sku_rejected(self):
        uow = FakeUnitOfWork()
        AddProductHandler(uow).handle("SHIRT", "Linen Shirt", "49.90")
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(uow).handle("shirt", "Other Shirt", "19.90")

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError):
            AddProductHandler(FakeUnitOfWork()).handle("SHIRT", "Linen Shirt", "0")

    def test_sale_price_becomes_current_price(self):
        product = AddProductHandler(FakeUnitOfWork()).handle(
            "SHIRT", "Linen Shirt", "50.00", sale_price="39.00"
        )
        assert str(product.current_price) == "€39.00"


class TestAddVariant:

    def test_opening_stock_goes_through_ledger(self):
        uow = FakeUnitOfWork()
        AddProductHandler(uow).handle("SHIRT", "Linen Shirt", "50.00")

        variant = AddVariantHandler(uow).handle("shirt", size="M", color="Blue", initial_stock=12)

        assert variant.stock_quantity == 12
        (movement,) = uow.store.movements
        assert movement.reference_type is ReferenceType.RESTOCK
        assert movement.quantity_delta == 12
        assert movement.note == "Opening stock"

    def test_unknown_product(self):
        with pytest.raises(EntityNotFoundError):
            AddVariantHandler(FakeUnitOfWork()).handle("NOPE", size="M")

    def test_duplicate_variant(self):
        uow = FakeUnitOfWork()
        AddProductHandler(uow).handle("SHIRT", "Linen Shirt", "50.00")
        AddVariantHandler(uow).handle("SHIRT", size="M", color="Blue")
        with pytest.raises(ValidationError):
            AddVariantHandler(uow).handle("SHIRT", size="M", color="Blue")


class TestUpdateProduct:

    def test_price_change_and_deactivate(self):
        uow = FakeUnitOfWork()
        add_product(uow, sku="SHIRT", price="50.00")

        product = UpdateProductHandler(uow).handle("shirt", price="60.00", active=False)

        assert str(product.current_price) == "€60.00"
        assert not product.is_active

    def test_clear_sale(self):
        uow = FakeUnitOfWork()
        add_product(uow, sku="SHIRT", price="50.00", sale_price="40.00")

        product = UpdateProductHandler(uow).handle("SHIRT", clear_sale=True)

        assert not product.is_on_sale

    def test_cost_price_is_set_on_add_and_update(self):
        uow = FakeUnitOfWork()
        AddProductHandler(uow).handle("shirt", "Linen Shirt", "50.00", cost_price="18.50")
        assert uow.products.get_by_sku("SHIRT").cost_price == Money.of("18.50")

        UpdateProductHandler(uow).handle("SHIRT", cost_price="21.00")

        product = uow.products.get_by_sku("SHIRT")
        assert product.cost_price == Money.of("21.00")
        assert product.current_price == Money.of("50.00")

    def test_catalog_lists_variants(self):
        uow = FakeUnitOfWork()
        product = add_product(uow)
        variant = add_variant(uow, product)

        (dto,) = ShowCatalogHandler(uow).handle()

        assert dto.variants == [variant.sku]
        assert dto.price == "€50.00"


class TestShippingMethods:

    def test_add_and_list(self):
        uow = FakeUnitOfWork()
        AddShippingMethodHandler(uow).handle("express", "Express", "9.95", "150.00")

        (method,) = ListShippingMethodsHandler(uow).handle()

        assert method.code == "express"
        assert str(method.base_cost) == "€9.95"

    def test_duplicate_code(self):
        uow = FakeUnitOfWork()
        AddShippingMethodHandler(uow).handle("express", "Express", "9.95")
        with pytest.raises(ValidationError):
            AddShippingMethodHandler(uow).handle("express", "Express", "9.95")


class TestAdjustStock:

    def test_restock_by_sku(self):
        uow = FakeUnitOfWork()
        variant = add_variant(uow, add_product(uow), stock=0)
        notifier = RecordingStockNotifier()

        new_quantity = AdjustStockHandler(uow, notifier).restock(variant.sku, 4, note="PO-17")

        assert new_quantity == 4
        assert [s.type for s in notifier.signals] == [
            StockSignalType.RESTOCKED,
            StockSignalType.LOW_STOCK,
        ]

    def test_set_quantity_records_difference(self):
        uow = FakeUnitOfWork()
        variant = add_variant(uow, add_product(uow), stock=10)

        AdjustStockHandler(uow).set_quantity(variant.sku, 7, reason="stock take")

        manual = [m for m in uow.store.movements if m.reference_type is ReferenceType.MANUAL]
        assert [m.quantity_delta for m in manual] == [-3]
        assert uow.variants.get_by_id(variant.id).stock_quantity == 7

    def test_unknown_sku(self):
        with pytest.raises(EntityNotFoundError):
            AdjustStockHandler(FakeUnitOfWork()).restock("NOPE", 1)

    def test_reconcile_reports_and_repairs(self):
        uow = FakeUnitOfWork()
        variant = add_variant(uow, add_product(uow), stock=5)
        drifted = uow.store.variants[variant.id]
        drifted.stock_quantity = 8

        handler = AdjustStockHandler(uow)
        assert handler.reconcile() == {variant.sku: 3}
        assert handler.reconcile(variant.sku, repair=True) == {variant.sku: 3}
        assert handler.reconcile() == {}


class TestShowInventory:

    def test_levels_include_reserved_units(self):
        uow = FakeUnitOfWork()
        variant = add_variant(uow, add_product(uow), stock=5)
        shipping = add_shipping_method(uow)
        owner = CartOwner.user(7)
        uow.carts.store_for(owner).put(variant.id, 2)
        PlaceOrderHandler(uow, FakePaymentGateway()).handle(owner, checkout_request(shipping.id))

        (level,) = ShowInventoryHandler(uow).handle()

        assert (level.on_hand, level.reserved, level.available) == (5, 2, 3)
        assert level.product_name == "Linen Shirt"

    def test_low_and_out_of_stock(self):
        uow = FakeUnitOfWork()
        product = add_product(uow)
        add_variant(uow, product, size="S", stock=0)
        add_variant(uow, product, size="M", stock=2)
        add_variant(uow, product, size="L", stock=30)
        handler = ShowInventoryHandler(uow)

        assert [level.size for level in handler.out_of_stock()] == ["S"]
        assert [level.size for level in handler.low_stock()] == ["M"]

    def test_history_newest_first(self):
        uow = FakeUnitOfWork()
        variant = add_variant(uow, add_product(uow), stock=5)
        AdjustStockHandler(uow).restock(variant.sku, 3)

        history = ShowInventoryHandler(uow).history(variant.sku)

        assert [m.delta for m in history] == [3, 5]
        assert history[0].reference_type == "restock"

    def test_value_uses_cost_price_or_half_the_regular_price(self):
        uow = FakeUnitOfWork()
        costed = add_product(uow, sku="SHIRT", price="50.00", cost_price="20.00")
        uncosted = add_product(uow, sku="SCARF", name="Wool Scarf", price="30.00")
        retired = add_product(uow, sku="CAP", name="Cap", price="10.00", is_active=False)
        add_variant(uow, costed, size="M", stock=3)
        add_variant(uow, costed, size="L", stock=0)
        add_variant(uow, uncosted, size="OS", stock=2)
        add_variant(uow, retired, size="OS", stock=100)

        value = ShowInventoryHandler(uow).value()

        # 3 x 20.00 + 2 x (30.00 / 2)
        assert value == Money.of("90.00")

    def test_value_of_empty_catalog_is_zero(self):
        assert ShowInventoryHandler(FakeUnitOfWork()).value() == Money.zero()
