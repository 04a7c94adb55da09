"""
carcass_engines.comparison -- Side-by-side indicators of saved quotations.

Responsibility:
    Build the comparison table for a selection of two to five stored
    quotations: blended USD/kg, carcass weight, the difference with its
    sign inverted (a gain is positive) and the absolute difference.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Rows follow the order of the stored quotations supplied, not the
      order of the selection.
    - Selection size is bounded: at least 2, at most 5 quotations.

Failure modes:
    - ValueError for a selection outside the bounds or naming ids that are
      not among the supplied quotations.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from carcass_kernel.domain.records import StoredQuotation
from carcass_kernel.domain.values import ZERO
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.comparison")

MIN_SELECTION = 2
MAX_SELECTION = 5
NO_BUSINESS_LABEL = "Sin Negocio"


@dataclass(frozen=True)
class ComparisonRow:
    quotation_id: str
    label: str
    created_at: datetime
    usd_per_kg: Decimal
    media_res_weight: Decimal
    net_result_usd: Decimal  # -difference_usd: gains positive, losses negative
    absolute_difference_usd: Decimal


def compare_quotations(
    quotations: Sequence[StoredQuotation],
    selected_ids: Iterable[str],
) -> tuple[ComparisonRow, ...]:
    selected = list(dict.fromkeys(selected_ids))
    if not MIN_SELECTION <= len(selected) <= MAX_SELECTION:
        raise ValueError(
            f"Select between {MIN_SELECTION} and {MAX_SELECTION} quotations, "
            f"got {len(selected)}"
        )
    known = {q.id for q in quotations}
    unknown = [qid for qid in selected if qid not in known]
    if unknown:
        raise ValueError(f"Unknown quotation ids: {', '.join(unknown)}")

    wanted = set(selected)
    rows = []
    for quotation in quotations:
        if quotation.id not in wanted:
            continue
        record = quotation.record
        position = len(rows) + 1
        rows.append(
            ComparisonRow(
                quotation_id=quotation.id,
                label=f"#{position} - {quotation.business_name or NO_BUSINESS_LABEL}",
                created_at=quotation.created_at,
                usd_per_kg=record.usd_per_kg,
                media_res_weight=record.media_res_weight,
                net_result_usd=ZERO - record.difference_usd,
                absolute_difference_usd=abs(record.difference_usd),
            )
        )
    logger.debug("quotations_compared", extra={"quotation_count": len(rows)})
    return tuple(rows)
