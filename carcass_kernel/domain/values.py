"""
Module: carcass_kernel.domain.values
Responsibility:
    Value objects shared by every layer: the three price denominations a
    cut or cost can be entered in, and the three-slot price record that
    holds one amount per denomination.

Architecture position:
    Kernel > Domain.  Pure values, no I/O, no logging.

Invariants enforced:
    - Amounts are always Decimal (floats and strings are coerced on entry).
    - ``PriceSlots.only`` / ``keep_only`` produce records where at most the
      active denomination's slot is non-zero.

Failure modes:
    - InvalidCurrencyError for an unknown currency label.
    - InvalidPriceError for an amount that cannot be read as a number.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from carcass_kernel.exceptions import InvalidCurrencyError, InvalidPriceError

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")


class Currency(str, Enum):
    """Denomination a price is entered in."""

    USD = "USD"
    ARS = "ARS"
    ARS_WITH_VAT = "ARS + IVA"  # Peso price including value-added tax

    @classmethod
    def parse(cls, value: Currency | str) -> Currency:
        """Accept an enum member, its value ("ARS + IVA") or its name."""
        if isinstance(value, Currency):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise InvalidCurrencyError(str(value)) from None


def to_decimal(value: Decimal | int | float | str | None, field: str = "amount") -> Decimal:
    """Coerce user input into a Decimal; ``None`` becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise InvalidPriceError(field, value) from e
    if not result.is_finite():
        raise InvalidPriceError(field, value)
    return result


def round2(value: Decimal) -> Decimal:
    """Presentation rounding to 2 decimal places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class PriceSlots:
    """
    One amount per denomination.

    Contract:
        Mirrors the persisted ``price_ars`` / ``price_ars_iva`` / ``price_usd``
        columns.  Only the slot matching the owner's active currency is
        meaningful; setters keep the other two at zero.
    """

    ars: Decimal = ZERO
    ars_with_vat: Decimal = ZERO
    usd: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("ars", "ars_with_vat", "usd"):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))

    @classmethod
    def zero(cls) -> PriceSlots:
        return cls()

    @classmethod
    def only(cls, currency: Currency, amount: Decimal) -> PriceSlots:
        """Record with ``amount`` in the ``currency`` slot and zeros elsewhere."""
        return cls.zero().with_amount(currency, amount)

    def get(self, currency: Currency) -> Decimal:
        if currency is Currency.USD:
            return self.usd
        if currency is Currency.ARS:
            return self.ars
        return self.ars_with_vat

    def with_amount(self, currency: Currency, amount: Decimal) -> PriceSlots:
        """Replace a single slot, leaving the others untouched."""
        amount = to_decimal(amount)
        if currency is Currency.USD:
            return PriceSlots(self.ars, self.ars_with_vat, amount)
        if currency is Currency.ARS:
            return PriceSlots(amount, self.ars_with_vat, self.usd)
        return PriceSlots(self.ars, amount, self.usd)

    def keep_only(self, currency: Currency) -> PriceSlots:
        """Zero every slot except ``currency``."""
        return PriceSlots.only(currency, self.get(currency))

    @property
    def is_zero(self) -> bool:
        return self.ars == ZERO and self.ars_with_vat == ZERO and self.usd == ZERO
