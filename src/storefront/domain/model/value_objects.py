"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from storefront.domain.exceptions import ValidationError

CENT = Decimal("0.01")
DEFAULT_CURRENCY = "EUR"

_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.  Amounts are always held at
    cent precision (half-up rounding).
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )
        object.__setattr__(self, "amount", self.amount.quantize(CENT, rounding=ROUND_HALF_UP))

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < Decimal("0"):
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def included_tax(self, rate: Decimal) -> Money:
        """Tax already contained in this gross amount at *rate*.

        ``gross * rate / (1 + rate)`` -- the amount is VAT-inclusive, so the
        tax is extracted, never added on top.
        """
        if rate < Decimal("0"):
            raise ValidationError(f"Tax rate cannot be negative, got {rate}")
        return Money(self.amount * (rate / (Decimal("1") + rate)), self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        symbol = _SYMBOLS.get(self.currency)
        if symbol is None:
            return f"{self.amount:.2f} {self.currency}"
        return f"{symbol}{self.amount:.2f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(Decimal("0"), currency)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
