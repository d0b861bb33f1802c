"""SQLAlchemy implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.domain.exceptions import ConcurrencyConflict
from storefront.domain.model.order import (
    Address,
    AddressType,
    Order,
    OrderLineItem,
    OrderStatus,
    OrderTotals,
    PaymentMethod,
    PaymentStatus,
)
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.orm import (
    OrderAddressRow,
    OrderItemRow,
    OrderRow,
)


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        row = self._session.scalars(self._select().where(OrderRow.id == order_id)).first()
        return self._to_domain(row) if row else None

    def get_by_number(self, number: str) -> Order | None:
        row = self._session.scalars(self._select().where(OrderRow.number == number)).first()
        return self._to_domain(row) if row else None

    def get_by_payment_reference(self, reference: str) -> Order | None:
        stmt = self._select().where(OrderRow.payment_reference == reference)
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    def get_by_number_for_update(self, number: str) -> Order | None:
        stmt = (
            self._select()
            .where(OrderRow.number == number)
            .with_for_update(of=OrderRow)
            .execution_options(populate_existing=True)
        )
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    def last_number_with_prefix(self, prefix: str) -> str | None:
        # Longer numbers first so a sequence past 999 still sorts last.
        stmt = (
            select(OrderRow.number)
            .where(OrderRow.number.startswith(prefix, autoescape=True))
            .order_by(func.length(OrderRow.number).desc(), OrderRow.number.desc())
            .limit(1)
        )
        return self._session.scalar(stmt)

    def reserved_quantity(self, variant_id: int) -> int:
        stmt = (
            select(func.coalesce(func.sum(OrderItemRow.quantity), 0))
            .join(OrderRow, OrderItemRow.order_id == OrderRow.id)
            .where(
                OrderItemRow.variant_id == variant_id,
                OrderRow.status == OrderStatus.PENDING.value,
                OrderRow.payment_status != PaymentStatus.PAID.value,
            )
        )
        return int(self._session.scalar(stmt) or 0)

    def list_expired_pending(self, created_before: datetime) -> list[Order]:
        stmt = (
            self._select()
            .where(
                OrderRow.status == OrderStatus.PENDING.value,
                OrderRow.payment_status != PaymentStatus.PAID.value,
                OrderRow.created_at < created_before,
            )
            .order_by(OrderRow.created_at)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def list_for_customer(
        self, user_id: int | None = None, email: str | None = None
    ) -> list[Order]:
        conditions = []
        if user_id is not None:
            conditions.append(OrderRow.user_id == user_id)
        if email:
            conditions.append(OrderRow.guest_email == email)
            conditions.append(
                OrderRow.id.in_(
                    select(OrderAddressRow.order_id).where(OrderAddressRow.email == email)
                )
            )
        if not conditions:
            return []
        stmt = self._select().where(or_(*conditions)).order_by(OrderRow.created_at.desc())
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def save(self, order: Order) -> None:
        if order.id is None:
            row = self._new_row(order)
            self._session.add(row)
        else:
            row = self._session.get(OrderRow, order.id)
            self._update_row(row, order)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise ConcurrencyConflict(
                f"Order number {order.number} was taken by a concurrent checkout"
            ) from exc
        order.id = row.id

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _select():
        return select(OrderRow).options(
            selectinload(OrderRow.items), selectinload(OrderRow.addresses)
        )

    @classmethod
    def _new_row(cls, order: Order) -> OrderRow:
        row = OrderRow(
            number=order.number,
            payment_method=order.payment_method.value,
            currency=order.totals.total.currency,
            subtotal=order.totals.subtotal.amount,
            tax=order.totals.tax.amount,
            shipping_cost=order.totals.shipping.amount,
            total=order.totals.total.amount,
            created_at=order.created_at,
            items=[
                OrderItemRow(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    sku=item.sku,
                    color=item.color,
                    size=item.size,
                    quantity=item.quantity.value,
                    unit_price=item.unit_price.amount,
                )
                for item in order.items
            ],
        )
        cls._update_row(row, order)
        return row

    @staticmethod
    def _update_row(row: OrderRow, order: Order) -> None:
        row.user_id = order.user_id
        row.guest_email = order.guest_email
        row.status = order.status.value
        row.payment_status = order.payment_status.value
        row.payment_reference = order.payment_reference
        row.refunded_amount = order.refunded_amount.amount if order.refunded_amount else None
        row.customer_notes = order.customer_notes
        row.tracking_number = order.tracking_number
        row.cancellation_reason = order.cancellation_reason
        row.paid_at = order.paid_at
        row.shipped_at = order.shipped_at
        row.delivered_at = order.delivered_at
        row.cancelled_at = order.cancelled_at

        existing = {address.address_type: address for address in row.addresses}
        for address in (order.billing_address, order.shipping_address):
            address_row = existing.get(address.address_type.value)
            if address_row is None:
                address_row = OrderAddressRow(address_type=address.address_type.value)
                row.addresses.append(address_row)
            address_row.first_name = address.first_name
            address_row.last_name = address.last_name
            address_row.street_address = address.street_address
            address_row.postal_code = address.postal_code
            address_row.city = address.city
            address_row.country = address.country
            address_row.phone = address.phone
            address_row.email = address.email

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        currency = row.currency
        addresses = {
            AddressType(a.address_type): Address(
                address_type=AddressType(a.address_type),
                first_name=a.first_name,
                last_name=a.last_name,
                street_address=a.street_address,
                postal_code=a.postal_code,
                city=a.city,
                phone=a.phone,
                country=a.country,
                email=a.email,
            )
            for a in row.addresses
        }
        items = [
            OrderLineItem(
                product_id=i.product_id,
                variant_id=i.variant_id,
                product_name=i.product_name,
                sku=i.sku,
                color=i.color,
                size=i.size,
                quantity=Quantity(i.quantity),
                unit_price=Money(i.unit_price, currency),
            )
            for i in row.items
        ]
        return Order(
            id=row.id,
            number=row.number,
            items=items,
            billing_address=addresses[AddressType.BILLING],
            shipping_address=addresses[AddressType.SHIPPING],
            totals=OrderTotals(
                subtotal=Money(row.subtotal, currency),
                tax=Money(row.tax, currency),
                shipping=Money(row.shipping_cost, currency),
                total=Money(row.total, currency),
            ),
            payment_method=PaymentMethod(row.payment_method),
            user_id=row.user_id,
            guest_email=row.guest_email,
            status=OrderStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            payment_reference=row.payment_reference,
            refunded_amount=(
                Money(row.refunded_amount, currency) if row.refunded_amount is not None else None
            ),
            customer_notes=row.customer_notes,
            tracking_number=row.tracking_number,
            cancellation_reason=row.cancellation_reason,
            created_at=row.created_at,
            paid_at=row.paid_at,
            shipped_at=row.shipped_at,
            delivered_at=row.delivered_at,
            cancelled_at=row.cancelled_at,
        )
