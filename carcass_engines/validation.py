"""
carcass_engines.validation -- Save gate for a quotation.

Responsibility:
    Two independent completeness checks over the current display
    resolution:
      * price completeness: every non-exempt displayed cut has a positive
        price under its active currency (itemized list of offenders);
      * cost completeness: every non-exempt displayed cut has at least one
        cost assignment (single aggregate flag).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes the taxonomy resolver output and the session's cost rows.

Invariants enforced:
    - No caching: both checks are recomputed from the display ids passed
      in, so a business switch invalidates stale results immediately.
    - Comparisons use un-rounded prices.
    - Exempt placeholder cuts (handling, bone, fat, cooling) may stay at 0
      and need no cost.

Failure modes:
    - None.  Failures are reported as a ``ValidationOutcome``; raising is
      left to the save path.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from carcass_engines.tracer import traced_engine
from carcass_kernel.domain.catalog import CutCatalog
from carcass_kernel.domain.session import CostRow, CutPricingState
from carcass_kernel.domain.values import ZERO
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.validation")

MISSING_COSTS_MESSAGE = "Each cut requires at least one assigned cost."


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of both gates.

    Guarantees:
        - ``can_save`` is True iff no price is missing and costs are complete.
        - ``missing_price_cut_names`` follows display order.
    """

    missing_price_cut_ids: tuple[str, ...]
    missing_price_cut_names: tuple[str, ...]
    missing_costs: bool

    @property
    def prices_complete(self) -> bool:
        return not self.missing_price_cut_ids

    @property
    def costs_complete(self) -> bool:
        return not self.missing_costs

    @property
    def can_save(self) -> bool:
        return self.prices_complete and self.costs_complete

    @property
    def messages(self) -> tuple[str, ...]:
        """Human-readable failure lines for the caller to render."""
        lines = [f"Missing price: {name}" for name in self.missing_price_cut_names]
        if self.missing_costs:
            lines.append(MISSING_COSTS_MESSAGE)
        return tuple(lines)


def missing_price_cuts(
    display_cut_ids: Sequence[str],
    cut_states: Mapping[str, CutPricingState],
    exempt_cut_ids: Iterable[str],
) -> tuple[str, ...]:
    """Displayed, non-exempt cut ids whose active price is not positive."""
    exempt = frozenset(exempt_cut_ids)
    missing = []
    for cut_id in display_cut_ids:
        if cut_id in exempt:
            continue
        state = cut_states.get(cut_id)
        if state is None or state.active_price <= ZERO:
            missing.append(cut_id)
    return tuple(missing)


def has_cost_coverage(
    display_cut_ids: Sequence[str],
    cost_rows: Iterable[CostRow],
    exempt_cut_ids: Iterable[str],
) -> bool:
    """True when every displayed, non-exempt cut has at least one cost row."""
    exempt = frozenset(exempt_cut_ids)
    covered = {row.cut_id for row in cost_rows}
    return all(c in covered for c in display_cut_ids if c not in exempt)


class ValidationEngine:
    """
    Completeness gate run before a quotation is persisted.

    Contract:
        Pure function.  Does not block editing; only the save path acts on
        the outcome.
    """

    @traced_engine("validation", "1.0", fingerprint_fields=("display_cut_ids",))
    def validate(
        self,
        *,
        catalog: CutCatalog,
        display_cut_ids: Sequence[str],
        cut_states: Mapping[str, CutPricingState],
        cost_rows: Sequence[CostRow],
        exempt_cut_ids: Iterable[str],
    ) -> ValidationOutcome:
        exempt = frozenset(exempt_cut_ids)
        missing_ids = missing_price_cuts(display_cut_ids, cut_states, exempt)
        missing_costs = not has_cost_coverage(display_cut_ids, cost_rows, exempt)

        outcome = ValidationOutcome(
            missing_price_cut_ids=missing_ids,
            missing_price_cut_names=tuple(catalog.name_of(c) for c in missing_ids),
            missing_costs=missing_costs,
        )
        if not outcome.can_save:
            logger.info(
                "validation_failed",
                extra={
                    "missing_price_count": len(missing_ids),
                    "missing_costs": missing_costs,
                },
            )
        return outcome
