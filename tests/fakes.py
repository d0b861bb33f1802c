"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the SQL repositories
but keep everything in dicts. No database, no side effects.  Reads hand
out copies, so (like a real database) nothing changes until ``save``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from storefront.application.dto import AddressSpec, CheckoutRequest
from storefront.domain.exceptions import ConcurrencyConflict, PaymentError
from storefront.domain.model.cart import CartLine, CartOwner
from storefront.domain.model.order import Order, OrderStatus, PaymentStatus
from storefront.domain.model.product import Product
from storefront.domain.model.shipping import ShippingMethod
from storefront.domain.model.stock_movement import StockMovement, StockSignal
from storefront.domain.model.value_objects import Money
from storefront.domain.model.variant import Variant
from storefront.domain.port.notifier import OrderNotifier, StockNotifier
from storefront.domain.port.payment_gateway import (
    ConfirmationStatus,
    PaymentConfirmation,
    PaymentGateway,
    PaymentIntent,
    RefundReceipt,
)
from storefront.domain.repository.cart_store import CartStore, CartStoreProvider
from storefront.domain.repository.catalog_repository import (
    ProductRepository,
    VariantRepository,
)
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.shipping_method_repository import (
    ShippingMethodRepository,
)
from storefront.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.stock_ledger import StockLedger
from storefront.infrastructure.session.session_cart_store import SessionCartStore


@dataclass
class InMemoryStore:
    """Everything a unit of work can see, in one place so it can be snapshotted."""

    products: dict[int, Product] = field(default_factory=dict)
    variants: dict[int, Variant] = field(default_factory=dict)
    movements: list[StockMovement] = field(default_factory=list)
    orders: dict[int, Order] = field(default_factory=dict)
    shipping_methods: dict[int, ShippingMethod] = field(default_factory=dict)
    user_carts: dict[int, dict[int, CartLine]] = field(default_factory=dict)
    next_id: int = 1

    def allocate_id(self) -> int:
        value = self.next_id
        self.next_id += 1
        return value


class FakeProductRepository(ProductRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_by_id(self, product_id: int) -> Product | None:
        return copy.deepcopy(self._store.products.get(product_id))

    def get_by_sku(self, sku: str) -> Product | None:
        for p in self._store.products.values():
            if p.sku == sku:
                return copy.deepcopy(p)
        return None

    def list_all(self) -> list[Product]:
        return [copy.deepcopy(p) for p in sorted(self._store.products.values(), key=lambda p: p.name)]

    def save(self, product: Product) -> None:
        if product.id is None:
            product.id = self._store.allocate_id()
        self._store.products[product.id] = copy.deepcopy(product)


class FakeVariantRepository(VariantRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.locked: list[int] = []

    def get_by_id(self, variant_id: int) -> Variant | None:
        return copy.deepcopy(self._store.variants.get(variant_id))

    def get_for_update(self, variant_id: int) -> Variant | None:
        self.locked.append(variant_id)
        return self.get_by_id(variant_id)

    def get_by_sku(self, sku: str) -> Variant | None:
        for v in self._store.variants.values():
            if v.sku == sku:
                return copy.deepcopy(v)
        return None

    def list_all(self) -> list[Variant]:
        return [copy.deepcopy(v) for v in sorted(self._store.variants.values(), key=lambda v: v.sku)]

    def list_low_stock(self) -> list[Variant]:
        low = [v for v in self._store.variants.values() if v.is_available and v.is_low_stock]
        return [copy.deepcopy(v) for v in sorted(low, key=lambda v: (v.stock_quantity, v.sku))]

    def list_out_of_stock(self) -> list[Variant]:
        out = [v for v in self._store.variants.values() if v.stock_quantity == 0]
        return [copy.deepcopy(v) for v in sorted(out, key=lambda v: v.sku)]

    def save(self, variant: Variant) -> None:
        if variant.id is None:
            variant.id = self._store.allocate_id()
        self._store.variants[variant.id] = copy.deepcopy(variant)


class FakeStockMovementRepository(StockMovementRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def add(self, movement: StockMovement) -> StockMovement:
        stored = replace(movement, id=self._store.allocate_id())
        self._store.movements.append(stored)
        return stored

    def list_for_variant(
        self,
        variant_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StockMovement]:
        result = [
            m
            for m in self._store.movements
            if m.variant_id == variant_id
            and (since is None or m.created_at >= since)
            and (until is None or m.created_at <= until)
        ]
        result.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        return result[:limit] if limit is not None else result

    def sum_for_variant(self, variant_id: int) -> int:
        return sum(m.quantity_delta for m in self._store.movements if m.variant_id == variant_id)


class FakeOrderRepository(OrderRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_by_id(self, order_id: int) -> Order | None:
        return copy.deepcopy(self._store.orders.get(order_id))

    def get_by_number(self, number: str) -> Order | None:
        for o in self._store.orders.values():
            if o.number == number:
                return copy.deepcopy(o)
        return None

    def get_by_payment_reference(self, reference: str) -> Order | None:
        for o in self._store.orders.values():
            if o.payment_reference == reference:
                return copy.deepcopy(o)
        return None

    def get_by_number_for_update(self, number: str) -> Order | None:
        return self.get_by_number(number)

    def last_number_with_prefix(self, prefix: str) -> str | None:
        numbers = [o.number for o in self._store.orders.values() if o.number.startswith(prefix)]
        if not numbers:
            return None
        return max(numbers, key=lambda n: (len(n), n))

    def reserved_quantity(self, variant_id: int) -> int:
        return sum(
            item.quantity.value
            for o in self._store.orders.values()
            if o.status is OrderStatus.PENDING and o.payment_status is not PaymentStatus.PAID
            for item in o.items
            if item.variant_id == variant_id
        )

    def list_expired_pending(self, created_before: datetime) -> list[Order]:
        return [
            copy.deepcopy(o)
            for o in sorted(self._store.orders.values(), key=lambda o: o.created_at)
            if o.reserves_stock and o.created_at < created_before
        ]

    def list_for_customer(
        self, user_id: int | None = None, email: str | None = None
    ) -> list[Order]:
        return [
            copy.deepcopy(o)
            for o in self._store.orders.values()
            if (user_id is not None and o.user_id == user_id)
            or (email and (o.guest_email == email or o.billing_address.email == email))
        ]

    def save(self, order: Order) -> None:
        if order.id is None:
            if any(o.number == order.number for o in self._store.orders.values()):
                raise ConcurrencyConflict(f"Order number {order.number} already exists")
            order.id = self._store.allocate_id()
        self._store.orders[order.id] = copy.deepcopy(order)


class FakeShippingMethodRepository(ShippingMethodRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_by_id(self, method_id: int) -> ShippingMethod | None:
        return copy.deepcopy(self._store.shipping_methods.get(method_id))

    def get_by_code(self, code: str) -> ShippingMethod | None:
        for m in self._store.shipping_methods.values():
            if m.code == code:
                return copy.deepcopy(m)
        return None

    def list_active(self) -> list[ShippingMethod]:
        return [copy.deepcopy(m) for m in self._store.shipping_methods.values() if m.is_active]

    def save(self, method: ShippingMethod) -> None:
        if method.id is None:
            method.id = self._store.allocate_id()
        self._store.shipping_methods[method.id] = copy.deepcopy(method)


class FakeUserCartStore(CartStore):

    persistent = True

    def __init__(self, store: InMemoryStore, user_id: int) -> None:
        self._store = store
        self._user_id = user_id

    def _lines(self) -> dict[int, CartLine]:
        return self._store.user_carts.setdefault(self._user_id, {})

    def lines(self) -> list[CartLine]:
        return [copy.copy(line) for line in sorted(self._lines().values(), key=lambda l: l.added_at)]

    def get(self, variant_id: int) -> CartLine | None:
        line = self._lines().get(variant_id)
        return copy.copy(line) if line else None

    def put(self, variant_id: int, quantity: int, now: datetime | None = None) -> CartLine:
        existing = self._lines().get(variant_id)
        added_at = existing.added_at if existing else (now or datetime.now(timezone.utc))
        line = CartLine(variant_id=variant_id, quantity=quantity, added_at=added_at)
        self._lines()[variant_id] = line
        return copy.copy(line)

    def remove(self, variant_id: int) -> None:
        self._lines().pop(variant_id, None)

    def clear(self) -> None:
        self._lines().clear()


class FakeCartStoreProvider(CartStoreProvider):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def store_for(self, owner: CartOwner) -> CartStore:
        if owner.user_id is not None:
            return FakeUserCartStore(self._store, owner.user_id)
        return SessionCartStore(owner.session)  # type: ignore[arg-type]


class FakeUnitOfWork(UnitOfWork):
    """Snapshots the store on enter; rollback puts the snapshot back."""

    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()
        self.products = FakeProductRepository(self.store)
        self.variants = FakeVariantRepository(self.store)
        self.movements = FakeStockMovementRepository(self.store)
        self.orders = FakeOrderRepository(self.store)
        self.shipping_methods = FakeShippingMethodRepository(self.store)
        self.carts = FakeCartStoreProvider(self.store)
        self.commits = 0
        self._snapshot: dict | None = None

    def __enter__(self) -> UnitOfWork:
        self._snapshot = copy.deepcopy(vars(self.store))
        return super().__enter__()

    def commit(self) -> None:
        self._snapshot = None
        self.commits += 1

    def rollback(self) -> None:
        if self._snapshot is not None:
            vars(self.store).update(self._snapshot)
            self._snapshot = None


class FakePaymentGateway(PaymentGateway):

    def __init__(
        self,
        fail_create: bool = False,
        confirmation: ConfirmationStatus = ConfirmationStatus.SUCCEEDED,
        settled_amount: Money | None = None,
    ) -> None:
        self.fail_create = fail_create
        self.confirmation = confirmation
        self.settled_amount = settled_amount
        self.intents: list[str] = []
        self.confirmed: list[str] = []
        self.refunds: list[Money] = []

    def create_intent(self, order: Order) -> PaymentIntent:
        if self.fail_create:
            raise PaymentError("Gateway unreachable")
        reference = f"pi_{len(self.intents) + 1}"
        self.intents.append(reference)
        return PaymentIntent(reference=reference, client_secret=f"{reference}_secret")

    def confirm(self, reference: str) -> PaymentConfirmation:
        self.confirmed.append(reference)
        return PaymentConfirmation(
            reference=reference,
            status=self.confirmation,
            settled_amount=self.settled_amount,
            failure_reason="card_declined" if self.confirmation is ConfirmationStatus.FAILED else None,
        )

    def refund(self, order: Order, amount: Money) -> RefundReceipt:
        self.refunds.append(amount)
        return RefundReceipt(reference=f"re_{len(self.refunds)}", amount=amount)


class RecordingStockNotifier(StockNotifier):

    def __init__(self, fail: bool = False) -> None:
        self.signals: list[StockSignal] = []
        self._fail = fail

    def publish(self, signal: StockSignal) -> None:
        if self._fail:
            raise RuntimeError("wishlist service down")
        self.signals.append(signal)


class RecordingOrderNotifier(OrderNotifier):

    def __init__(self) -> None:
        self.confirmed: list[str] = []

    def order_confirmed(self, order: Order) -> None:
        self.confirmed.append(order.number)


# --- Catalog seeding ---------------------------------------------------------------


def add_product(
    uow: FakeUnitOfWork,
    sku: str = "SHIRT",
    name: str = "Linen Shirt",
    price: str = "50.00",
    sale_price: str | None = None,
    is_active: bool = True,
    cost_price: str | None = None,
) -> Product:
    product = Product(
        id=None,
        sku=sku,
        name=name,
        regular_price=Money.of(price),
        sale_price=Money.of(sale_price) if sale_price else None,
        is_active=is_active,
        cost_price=Money.of(cost_price) if cost_price else None,
    )
    uow.products.save(product)
    return product


def add_variant(
    uow: FakeUnitOfWork,
    product: Product,
    stock: int = 10,
    size: str = "M",
    color: str | None = "Blue",
    low_stock_threshold: int = 5,
) -> Variant:
    """A variant whose opening stock is backed by a restock movement."""
    variant = Variant(
        id=None,
        product_id=product.id,  # type: ignore[arg-type]
        sku=Variant.build_sku(product.sku, color, size),
        color=color,
        size=size,
        low_stock_threshold=low_stock_threshold,
    )
    uow.variants.save(variant)
    if stock:
        StockLedger(uow.variants, uow.movements).restock(variant.id, stock)  # type: ignore[arg-type]
    return uow.variants.get_by_id(variant.id)  # type: ignore[arg-type, return-value]


def add_shipping_method(
    uow: FakeUnitOfWork,
    code: str = "standard",
    cost: str = "4.95",
    free_over: str | None = "100.00",
) -> ShippingMethod:
    method = ShippingMethod(
        id=None,
        code=code,
        name=code.title(),
        base_cost=Money.of(cost),
        free_shipping_threshold=Money.of(free_over) if free_over else None,
    )
    uow.shipping_methods.save(method)
    return method


def checkout_request(
    shipping_method_id: int,
    payment_method: str = "card",
    email: str = "alice@example.com",
) -> CheckoutRequest:
    return CheckoutRequest(
        email=email,
        billing=AddressSpec(
            first_name="Alice",
            last_name="Meyer",
            street_address="Hauptstr. 1",
            postal_code="10115",
            city="Berlin",
            phone="+49 30 1234",
        ),
        shipping_method_id=shipping_method_id,
        payment_method=payment_method,
    )
