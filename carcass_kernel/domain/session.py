"""
Module: carcass_kernel.domain.session
Responsibility:
    The explicit, immutable aggregate for one quotation edit session: the
    per-cut pricing overlay, cost assignments, total-cost overrides and the
    scalar inputs (weight, blended USD/kg, exchange rate).

Architecture position:
    Kernel > Domain.  Owned by the caller and passed into every engine
    function.  Edits are performed by ``carcass_engines.pricing`` and
    ``carcass_engines.cost_allocation``, which always return a new
    ``QuotationSession``; nothing here mutates in place.

Invariants enforced:
    - One ``CutPricingState`` per catalog cut, in catalog order.
    - ``CostRow`` is unique per ``(cut_id, cost_item_id)``.
    - At most one ``CostTotalOverride`` per cost item.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from carcass_kernel.domain.catalog import Business, CutCatalog
from carcass_kernel.domain.values import ZERO, Currency, PriceSlots, to_decimal

DEFAULT_CURRENCY = Currency.USD


@dataclass(frozen=True)
class CutPricingState:
    """Per-session price, currency and notes for one cut."""

    cut_id: str
    prices: PriceSlots = PriceSlots()
    currency: Currency = DEFAULT_CURRENCY
    notes: str = ""

    @property
    def active_price(self) -> Decimal:
        return self.prices.get(self.currency)


@dataclass(frozen=True)
class CostRow:
    """A cost item assigned to a cut, with its own price and currency."""

    cut_id: str
    cost_item_id: str
    currency: Currency = DEFAULT_CURRENCY
    prices: PriceSlots = PriceSlots()
    notes: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.cut_id, self.cost_item_id)

    @property
    def active_price(self) -> Decimal:
        return self.prices.get(self.currency)


@dataclass(frozen=True)
class CostTotalOverride:
    """One total amount for a cost item, split across every row sharing it."""

    cost_item_id: str
    value: Decimal
    currency: Currency = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_decimal(self.value, "value"))


@dataclass(frozen=True)
class QuotationSession:
    """
    Everything the engines need to price one half carcass.

    Contract:
        Frozen; use ``dataclasses.replace`` (or the engine edit functions)
        to derive a new session.
    Guarantees:
        - ``cut_states`` covers every catalog cut.
        - ``exchange_rate`` of ``None`` is a valid, degraded state.
    """

    catalog: CutCatalog
    cut_states: tuple[CutPricingState, ...]
    business: Business | None = None
    total_weight: Decimal = ZERO
    usd_per_kg: Decimal = ZERO
    exchange_rate: Decimal | None = None
    exchange_rate_updated_at: str | None = None
    cost_rows: tuple[CostRow, ...] = ()
    cost_overrides: tuple[CostTotalOverride, ...] = ()
    use_total_cost_mode: bool = False
    quotation_id: str | None = None

    @property
    def states_by_id(self) -> dict[str, CutPricingState]:
        return {s.cut_id: s for s in self.cut_states}

    def state_for(self, cut_id: str) -> CutPricingState | None:
        for state in self.cut_states:
            if state.cut_id == cut_id:
                return state
        return None

    def override_for(self, cost_item_id: str) -> CostTotalOverride | None:
        for override in self.cost_overrides:
            if override.cost_item_id == cost_item_id:
                return override
        return None

    def cost_row(self, cut_id: str, cost_item_id: str) -> CostRow | None:
        for row in self.cost_rows:
            if row.key == (cut_id, cost_item_id):
                return row
        return None

    def with_states(self, updated: dict[str, CutPricingState]) -> QuotationSession:
        """Replace the states named in ``updated``, keeping catalog order."""
        return replace(
            self,
            cut_states=tuple(updated.get(s.cut_id, s) for s in self.cut_states),
        )


def initial_cut_states(catalog: CutCatalog) -> tuple[CutPricingState, ...]:
    return tuple(CutPricingState(cut_id=cut.id) for cut in catalog)


def new_session(
    catalog: CutCatalog,
    exchange_rate: Decimal | int | str | None = None,
    exchange_rate_updated_at: str | None = None,
) -> QuotationSession:
    """Starting state: no business, zero inputs, every cut unpriced in USD."""
    rate = to_decimal(exchange_rate, "exchange_rate") if exchange_rate is not None else None
    return QuotationSession(
        catalog=catalog,
        cut_states=initial_cut_states(catalog),
        exchange_rate=rate,
        exchange_rate_updated_at=exchange_rate_updated_at,
    )
