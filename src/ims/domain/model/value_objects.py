"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ims.domain.exceptions import ValidationError

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """Monetary amount, always kept to whole cents.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.  Amounts are rounded half-up
    to two places on construction.
    """

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )
        object.__setattr__(
            self, "amount", self.amount.quantize(CENT, rounding=ROUND_HALF_UP)
        )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def scaled(self, rate: TaxRate) -> Money:
        """Apply a rate (e.g. tax) and round to the cent."""
        return Money(self.amount * rate.value, self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"${self.amount:.2f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero() -> Money:
        return Money(Decimal("0"))


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot invoice zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TaxRate:
    """Tax rate as a fraction of the subtotal (``0.12`` is 12%)."""

    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            raise ValidationError(
                f"Tax rate must be a Decimal, got {type(self.value).__name__}"
            )
        if self.value < 0 or self.value > 1:
            raise ValidationError(
                f"Tax rate must be between 0 and 1, got {self.value}"
            )

    @staticmethod
    def of(rate: str | float | int | Decimal) -> TaxRate:
        try:
            return TaxRate(Decimal(str(rate)))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid tax rate: {rate!r}") from exc

    @staticmethod
    def from_percent(percent: str | float | int | Decimal) -> TaxRate:
        """Build from a percentage as typed on the invoice form (``12`` -> 0.12)."""
        try:
            return TaxRate(Decimal(str(percent)) / Decimal("100"))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid tax percentage: {percent!r}") from exc

    def __str__(self) -> str:
        return f"{(self.value * 100).normalize():f}%"
