"""Data Transfer Objects -- plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storefront.domain.model.order import Address, AddressType, Order


# --- Input ---------------------------------------------------------------------


@dataclass(frozen=True)
class AddressSpec:
    """Input: a postal address as typed in at checkout."""

    first_name: str
    last_name: str
    street_address: str
    postal_code: str
    city: str
    phone: str
    country: str = "DE"

    def to_address(self, address_type: AddressType, email: str | None = None) -> Address:
        return Address(
            address_type=address_type,
            first_name=self.first_name.strip(),
            last_name=self.last_name.strip(),
            street_address=self.street_address.strip(),
            postal_code=self.postal_code.strip(),
            city=self.city.strip(),
            phone=self.phone.strip(),
            country=self.country,
            email=email,
        )


@dataclass(frozen=True)
class CheckoutRequest:
    """Input: everything the customer submits on the checkout form."""

    email: str
    billing: AddressSpec
    shipping_method_id: int
    payment_method: str
    shipping: AddressSpec | None = None  # None means "same as billing"
    customer_notes: str | None = None


# --- Output --------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    sku: str
    product_name: str
    color: str | None
    size: str
    quantity: int
    unit_price: str  # formatted, e.g. "€15.00"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    number: str
    status: str
    payment_status: str
    payment_method: str
    customer_email: str | None
    items: list[OrderLineItemDTO]
    subtotal: str
    tax: str
    shipping: str
    total: str
    created_at: str
    tracking_number: str | None = None
    cancellation_reason: str | None = None
    refunded: str | None = None

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            number=order.number,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method.value,
            customer_email=order.customer_email,
            items=[
                OrderLineItemDTO(
                    sku=item.sku,
                    product_name=item.product_name,
                    color=item.color,
                    size=item.size,
                    quantity=item.quantity.value,
                    unit_price=str(item.unit_price),
                    line_total=str(item.line_total),
                )
                for item in order.items
            ],
            subtotal=str(order.totals.subtotal),
            tax=str(order.totals.tax),
            shipping=str(order.totals.shipping),
            total=str(order.totals.total),
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            tracking_number=order.tracking_number,
            cancellation_reason=order.cancellation_reason,
            refunded=str(order.refunded_amount) if order.refunded_amount else None,
        )


@dataclass(frozen=True)
class PlaceOrderResult:
    """Output: the new order plus, for card/PayPal, the gateway handle to complete payment."""

    order: OrderDTO
    payment_reference: str | None = None
    client_secret: str | None = None

    @property
    def awaiting_payment(self) -> bool:
        return self.payment_reference is not None


@dataclass(frozen=True)
class CartLineDTO:
    variant_id: int
    sku: str
    product_name: str
    quantity: int
    max_quantity: int
    unit_price: str
    line_total: str
    is_available: bool


@dataclass(frozen=True)
class CartDTO:
    lines: list[CartLineDTO] = field(default_factory=list)
    item_count: int = 0
    subtotal: str = ""


@dataclass(frozen=True)
class CheckoutSummaryDTO:
    cart: CartDTO
    subtotal: str
    tax: str
    shipping: str
    total: str
    free_shipping: bool
