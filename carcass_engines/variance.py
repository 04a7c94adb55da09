"""
carcass_engines.variance -- Initial valuation vs itemized cut valuation.

Responsibility:
    Compare the bulk initial valuation (weight x blended USD/kg) against the
    sum of the itemized cut values, with and without the allocated costs,
    producing absolute and percentage differences.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes the totals of the valuation and cost allocation engines.

Invariants enforced:
    - Sign convention: ``difference_usd = initial - cuts``; a positive
      difference means the cuts are worth less than the bulk valuation
      (a loss, rendered "-"), a negative one is a gain (rendered "+").
    - With costs: ``difference_with_costs = difference - total_costs``
      where ``total_costs`` is already negative.
    - Division-by-zero safe: percentages are 0 when the initial
      valuation is 0.
    - Percentages are rounded to 2 places; USD differences are not.

Failure modes:
    - None.

Usage:
    from carcass_engines.variance import VarianceReporter

    report = VarianceReporter().report(
        total_initial_usd=Decimal("1200"),
        total_cuts_usd=Decimal("1000"),
        total_costs_usd=Decimal("-50"),
    )
    report.difference_usd       # Decimal("200")
    report.outcome              # VarianceOutcome.LOSS
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from carcass_engines.tracer import traced_engine
from carcass_kernel.domain.values import ZERO, round2
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.variance")


class VarianceOutcome(str, Enum):
    """How the itemized valuation compares with the bulk valuation."""

    LOSS = "loss"  # Cuts sum to less than the initial valuation
    GAIN = "gain"  # Cuts sum to more than the initial valuation
    EVEN = "even"

    @property
    def display_sign(self) -> str:
        if self is VarianceOutcome.LOSS:
            return "-"
        if self is VarianceOutcome.GAIN:
            return "+"
        return ""

    @classmethod
    def of(cls, difference: Decimal) -> VarianceOutcome:
        if difference > ZERO:
            return cls.LOSS
        if difference < ZERO:
            return cls.GAIN
        return cls.EVEN


def difference_percentage(difference: Decimal, total_initial_usd: Decimal) -> Decimal:
    """``round2(difference / initial * 100)``, or 0 when initial is 0."""
    if total_initial_usd == ZERO:
        return ZERO
    return round2(difference / total_initial_usd * Decimal("100"))


@dataclass(frozen=True)
class VarianceReport:
    """
    Differences between bulk and itemized valuations.

    All fields are immutable. Use properties for derived values.
    """

    total_initial_usd: Decimal
    total_cuts_usd: Decimal
    total_costs_usd: Decimal
    difference_usd: Decimal
    difference_percentage: Decimal
    difference_with_costs_usd: Decimal
    difference_with_costs_percentage: Decimal

    @property
    def outcome(self) -> VarianceOutcome:
        return VarianceOutcome.of(self.difference_usd)

    @property
    def outcome_with_costs(self) -> VarianceOutcome:
        return VarianceOutcome.of(self.difference_with_costs_usd)

    @property
    def display_sign(self) -> str:
        return self.outcome.display_sign

    @property
    def absolute_difference_usd(self) -> Decimal:
        return abs(self.difference_usd)


class VarianceReporter:
    """
    Pure function reporter for valuation variance.

    Contract:
        No I/O, fully deterministic.
    Guarantees:
        - ``difference_usd = total_initial_usd - total_cuts_usd``.
        - ``difference_with_costs_usd = difference_usd - total_costs_usd``.
        - Percentages relative to ``total_initial_usd``; 0 when it is 0.
    """

    @traced_engine(
        "variance",
        "1.0",
        fingerprint_fields=("total_initial_usd", "total_cuts_usd", "total_costs_usd"),
    )
    def report(
        self,
        *,
        total_initial_usd: Decimal,
        total_cuts_usd: Decimal,
        total_costs_usd: Decimal = ZERO,
    ) -> VarianceReport:
        difference = total_initial_usd - total_cuts_usd
        difference_with_costs = difference - total_costs_usd

        report = VarianceReport(
            total_initial_usd=total_initial_usd,
            total_cuts_usd=total_cuts_usd,
            total_costs_usd=total_costs_usd,
            difference_usd=difference,
            difference_percentage=difference_percentage(difference, total_initial_usd),
            difference_with_costs_usd=difference_with_costs,
            difference_with_costs_percentage=difference_percentage(
                difference_with_costs, total_initial_usd
            ),
        )
        logger.info(
            "variance_reported",
            extra={
                "difference_usd": str(report.difference_usd),
                "difference_percentage": str(report.difference_percentage),
                "outcome": report.outcome.value,
            },
        )
        return report
