"""
carcass_engines.pricing -- Invariant-enforcing edits of a quotation session.

Responsibility:
    Apply user edits (cut price, currency, notes, business selection and
    the scalar weight / USD-per-kg / exchange-rate inputs) to a
    ``QuotationSession``, returning a new session every time.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The only module allowed to derive new cut pricing states.

Invariants enforced:
    - Macro/sub-cut exclusivity: a positive price on a sub-cut zeroes every
      slot of its macro; a positive price on a macro zeroes every slot of
      all its children.  Both happen in the same edit as the price itself.
    - Single active slot: switching currency keeps the amount of the new
      currency's slot and zeroes the other two.
    - Fixed-cost cuts never accept a manual price (edit is ignored).
    - Selecting a business resets all cut pricing states.

Failure modes:
    - InvalidPriceError for negative price, weight, USD/kg or rate.
    - Unknown cut ids are logged at warning level and the session is
      returned unchanged.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from carcass_kernel.domain.catalog import Business
from carcass_kernel.domain.session import (
    CutPricingState,
    QuotationSession,
    initial_cut_states,
)
from carcass_kernel.domain.values import ZERO, Currency, PriceSlots, to_decimal
from carcass_kernel.exceptions import InvalidPriceError
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.pricing")

DEFAULT_NOTES_MAX_LENGTH = 500


def _non_negative(value: Decimal | int | float | str | None, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise InvalidPriceError(field, value)
    return amount


def set_cut_price(
    session: QuotationSession,
    cut_id: str,
    amount: Decimal | int | float | str,
    currency: Currency | str | None = None,
) -> QuotationSession:
    """
    Store ``amount`` in the cut's active currency slot.

    When ``currency`` is given the cut is switched to it first (zeroing the
    other slots).  A positive amount clears the conflicting macro/sub-cut
    family in the same step.
    """
    price = _non_negative(amount, "price")
    catalog = session.catalog
    cut = catalog.get(cut_id)
    state = session.state_for(cut_id)
    if cut is None or state is None:
        logger.warning("cut_not_in_session", extra={"cut_id": cut_id})
        return session

    if cut.is_fixed_cost:
        logger.debug("fixed_cost_price_ignored", extra={"cut_id": cut_id})
        return session

    if currency is not None:
        state = _switch_currency(state, Currency.parse(currency))

    updated: dict[str, CutPricingState] = {}
    if price > ZERO:
        macro = catalog.macro_of(cut_id)
        if macro is not None:
            macro_state = session.state_for(macro.id)
            if macro_state is not None:
                updated[macro.id] = replace(macro_state, prices=PriceSlots.zero())
        for child in catalog.children_of(cut.name):
            child_state = session.state_for(child.id)
            if child_state is not None:
                updated[child.id] = replace(child_state, prices=PriceSlots.zero())

    updated[cut_id] = replace(
        state, prices=state.prices.with_amount(state.currency, price)
    )
    logger.debug(
        "cut_price_set",
        extra={
            "cut_id": cut_id,
            "currency": state.currency.value,
            "cleared_cut_ids": sorted(k for k in updated if k != cut_id),
        },
    )
    return session.with_states(updated)


def _switch_currency(state: CutPricingState, currency: Currency) -> CutPricingState:
    return replace(state, currency=currency, prices=state.prices.keep_only(currency))


def set_cut_currency(
    session: QuotationSession,
    cut_id: str,
    currency: Currency | str,
) -> QuotationSession:
    """Make ``currency`` the cut's active denomination."""
    state = session.state_for(cut_id)
    if state is None:
        logger.warning("cut_not_in_session", extra={"cut_id": cut_id})
        return session
    return session.with_states(
        {cut_id: _switch_currency(state, Currency.parse(currency))}
    )


def set_cut_notes(
    session: QuotationSession,
    cut_id: str,
    notes: str,
    max_length: int = DEFAULT_NOTES_MAX_LENGTH,
) -> QuotationSession:
    """Free-text notes, truncated at ``max_length`` characters."""
    state = session.state_for(cut_id)
    if state is None:
        logger.warning("cut_not_in_session", extra={"cut_id": cut_id})
        return session
    return session.with_states({cut_id: replace(state, notes=(notes or "")[:max_length])})


def select_business(
    session: QuotationSession,
    business: Business | None,
) -> QuotationSession:
    """Switch the pricing profile; every cut starts over unpriced."""
    logger.info(
        "business_selected",
        extra={"business_id": business.id if business else None},
    )
    return replace(
        session,
        business=business,
        cut_states=initial_cut_states(session.catalog),
    )


def set_weight(session: QuotationSession, total_weight: Decimal | int | float | str) -> QuotationSession:
    return replace(session, total_weight=_non_negative(total_weight, "total_weight"))


def set_usd_per_kg(session: QuotationSession, usd_per_kg: Decimal | int | float | str) -> QuotationSession:
    return replace(session, usd_per_kg=_non_negative(usd_per_kg, "usd_per_kg"))


def set_exchange_rate(
    session: QuotationSession,
    exchange_rate: Decimal | int | float | str | None,
    updated_at: str | None = None,
) -> QuotationSession:
    """Supply (or withdraw, with ``None``) the reference pesos-per-dollar rate."""
    rate = None if exchange_rate is None else _non_negative(exchange_rate, "exchange_rate")
    return replace(
        session,
        exchange_rate=rate,
        exchange_rate_updated_at=updated_at,
    )


def reset_session(session: QuotationSession) -> QuotationSession:
    """
    Discard every in-memory edit.

    Keeps the catalog and the exchange rate (both come from outside the
    session) and forgets the business, inputs, prices and costs.
    """
    return QuotationSession(
        catalog=session.catalog,
        cut_states=initial_cut_states(session.catalog),
        exchange_rate=session.exchange_rate,
        exchange_rate_updated_at=session.exchange_rate_updated_at,
        quotation_id=session.quotation_id,
    )
