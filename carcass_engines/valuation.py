"""
carcass_engines.valuation -- Weighted per-cut and aggregate USD values.

Responsibility:
    For each displayed cut compute its kilograms (share of the carcass
    weight), its USD price per kilogram and its USD value; aggregate the
    cut values and the displayed percentages; compute the initial bulk
    valuation (weight x blended USD/kg).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on ``carcass_engines.currency`` and the display resolution from
    ``carcass_engines.taxonomy``.

Invariants enforced:
    - Full precision: no intermediate rounding.  ``round2`` is applied by
      presentation and persistence only.
    - A cut contributes value only when its active price is positive.
    - The displayed-percentage total is reported, never enforced.

Failure modes:
    - None.  Display ids missing from the catalog or the session are
      logged at warning level and skipped.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from carcass_engines.currency import VAT_DIVISOR, active_usd
from carcass_engines.tracer import traced_engine
from carcass_kernel.domain.catalog import CutCatalog
from carcass_kernel.domain.session import CutPricingState
from carcass_kernel.domain.values import ZERO, Currency
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.valuation")

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CutValuation:
    """Valuation of one displayed cut."""

    cut_id: str
    name: str
    percentage: Decimal
    kg: Decimal
    price: Decimal
    currency: Currency
    usd_per_kg: Decimal
    value_usd: Decimal


@dataclass(frozen=True)
class ValuationResult:
    """
    Per-cut valuations plus aggregates.

    ``total_percentage`` should be close to 100 for a well-formed catalog;
    ``percentage_gap`` exposes the difference for display.
    """

    lines: tuple[CutValuation, ...]
    total_cuts_usd: Decimal
    total_percentage: Decimal
    total_initial_usd: Decimal

    @property
    def percentage_gap(self) -> Decimal:
        return HUNDRED - self.total_percentage

    def line_for(self, cut_id: str) -> CutValuation | None:
        for line in self.lines:
            if line.cut_id == cut_id:
                return line
        return None


def initial_valuation(total_weight: Decimal, usd_per_kg: Decimal) -> Decimal:
    """Bulk valuation: weight times the operator's blended USD/kg."""
    return total_weight * usd_per_kg


class ValuationEngine:
    """
    Value the displayed cuts of a half carcass.

    Contract:
        Pure function.  No I/O, no database access.
    Guarantees:
        - ``kg = percentage / 100 * total_weight``.
        - ``value_usd = to_usd(price) * kg`` when price > 0, else 0.
        - ``total_cuts_usd`` is the un-rounded sum of ``value_usd``.
        - ``total_initial_usd = total_weight * usd_per_kg``.
    """

    @traced_engine(
        "valuation",
        "1.0",
        fingerprint_fields=("display_cut_ids", "total_weight", "usd_per_kg", "exchange_rate"),
    )
    def value_cuts(
        self,
        *,
        catalog: CutCatalog,
        display_cut_ids: Sequence[str],
        cut_states: Mapping[str, CutPricingState],
        total_weight: Decimal,
        usd_per_kg: Decimal,
        exchange_rate: Decimal | None,
        vat_divisor: Decimal = VAT_DIVISOR,
    ) -> ValuationResult:
        """
        Args:
            catalog: Cut catalog (percentages, names).
            display_cut_ids: Output of the taxonomy resolver.
            cut_states: Pricing state per cut id.
            total_weight: Half-carcass weight in kg.
            usd_per_kg: Blended bulk price entered by the operator.
            exchange_rate: Pesos per dollar, or ``None`` while unavailable.
            vat_divisor: Divisor removing VAT from ARS + IVA prices.
        """
        lines: list[CutValuation] = []
        total_cuts = ZERO
        total_pct = ZERO

        for cut_id in display_cut_ids:
            cut = catalog.get(cut_id)
            state = cut_states.get(cut_id)
            if cut is None or state is None:
                logger.warning("valuation_cut_skipped", extra={"cut_id": cut_id})
                continue

            kg = cut.percentage / HUNDRED * total_weight
            price = state.active_price
            usd_per_unit = active_usd(state.prices, state.currency, exchange_rate, vat_divisor)
            value = usd_per_unit * kg if price > ZERO else ZERO

            lines.append(
                CutValuation(
                    cut_id=cut.id,
                    name=cut.name,
                    percentage=cut.percentage,
                    kg=kg,
                    price=price,
                    currency=state.currency,
                    usd_per_kg=usd_per_unit,
                    value_usd=value,
                )
            )
            total_cuts += value
            total_pct += cut.percentage

        result = ValuationResult(
            lines=tuple(lines),
            total_cuts_usd=total_cuts,
            total_percentage=total_pct,
            total_initial_usd=initial_valuation(total_weight, usd_per_kg),
        )
        logger.info(
            "valuation_completed",
            extra={
                "cut_count": len(lines),
                "total_cuts_usd": str(result.total_cuts_usd),
                "total_percentage": str(result.total_percentage),
            },
        )
        return result
