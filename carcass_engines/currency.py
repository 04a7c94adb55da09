"""
carcass_engines.currency -- Normalize peso and dollar prices into USD.

Responsibility:
    Convert an amount entered in one of the three denominations (USD, ARS,
    ARS + IVA) into USD using a reference exchange rate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Leaf module: every other
    engine that needs a USD figure goes through ``to_usd``.

Invariants enforced:
    - USD amounts pass through unchanged, whatever the rate.
    - ARS + IVA amounts have the value-added tax removed (divide by
      ``VAT_DIVISOR``) before the exchange-rate division.
    - A missing or non-positive rate never raises: ARS-denominated amounts
      normalize to zero until a rate is supplied.

Failure modes:
    - None.  Unknown enum members cannot reach this module because
      ``Currency.parse`` rejects them at the edge.
"""

from __future__ import annotations

from decimal import Decimal

from carcass_kernel.domain.values import ZERO, Currency, PriceSlots, to_decimal
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.currency")

# Standard 10.5% VAT applied to meat in Argentina
VAT_DIVISOR = Decimal("1.105")


def has_usable_rate(exchange_rate: Decimal | int | float | str | None) -> bool:
    if exchange_rate is None:
        return False
    return to_decimal(exchange_rate, "exchange_rate") > ZERO


def to_usd(
    amount: Decimal,
    currency: Currency,
    exchange_rate: Decimal | int | float | str | None,
    vat_divisor: Decimal = VAT_DIVISOR,
) -> Decimal:
    """
    Convert ``amount`` in ``currency`` into USD.

    Args:
        amount: Amount as entered.
        currency: Denomination of ``amount``.
        exchange_rate: Pesos per dollar; ``None`` while not yet loaded.
            Coerced like ``amount``, so ints, floats and strings work.
        vat_divisor: Divisor removing VAT from ARS + IVA amounts.

    Returns:
        The USD equivalent; ``0`` for peso amounts when no usable rate.
    """
    amount = to_decimal(amount)
    if currency is Currency.USD:
        return amount
    if not has_usable_rate(exchange_rate):
        logger.debug(
            "exchange_rate_unavailable",
            extra={"currency": currency.value, "amount": str(amount)},
        )
        return ZERO
    exchange_rate = to_decimal(exchange_rate, "exchange_rate")
    if currency is Currency.ARS:
        return amount / exchange_rate
    return amount / vat_divisor / exchange_rate


def active_usd(
    prices: PriceSlots,
    currency: Currency,
    exchange_rate: Decimal | None,
    vat_divisor: Decimal = VAT_DIVISOR,
) -> Decimal:
    """Normalize only the slot of the active currency; others are ignored."""
    return to_usd(prices.get(currency), currency, exchange_rate, vat_divisor)
