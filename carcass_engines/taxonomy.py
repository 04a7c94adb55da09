"""
carcass_engines.taxonomy -- Decide which cuts a quotation displays and prices.

Responsibility:
    Resolve the ordered list of cut ids to show for a quotation from the
    macro/sub-cut catalog and the selected business's cut preferences.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by valuation, validation and the quotation evaluator.

Invariants enforced:
    - Determinism: the result depends only on the catalog order, the macro
      order and the business selection.
    - A business selection toggles granularity per macro, never per
      sub-cut: either the macro alone or all of its children are shown.
    - Stale macro names are skipped, never raised.

Failure modes:
    - None.  Missing catalog entries are logged at warning level and skipped.

Usage:
    from carcass_engines.taxonomy import TaxonomyResolver

    display_ids = TaxonomyResolver().resolve_display_cuts(
        catalog=catalog,
        macro_names=("Ral", "Rueda", "Parrillero", "Delantero"),
        business_cut_ids=business.cut_ids,
        utility_cut_name="Frío",
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from carcass_engines.tracer import traced_engine
from carcass_kernel.domain.catalog import CutCatalog
from carcass_kernel.domain.values import ZERO
from carcass_kernel.logging_config import get_logger

logger = get_logger("engines.taxonomy")


class TaxonomyResolver:
    """
    Macro vs sub-cut display resolution.

    Contract:
        Pure function over the catalog and the business selection.
    Guarantees:
        - Macros are processed in the order given by ``macro_names``.
        - When any non-fixed-cost child of a macro is selected, every child
          of that macro (fixed-cost children included) is displayed in
          catalog order; otherwise the macro itself is displayed.
        - The utility cut is appended last when the catalog has it.
        - Cuts outside every macro, other than the utility cut, are never
          displayed.
    Non-goals:
        - Does not restrict which of the displayed cuts may be priced.
    """

    @traced_engine("taxonomy", "1.0", fingerprint_fields=("macro_names", "business_cut_ids"))
    def resolve_display_cuts(
        self,
        *,
        catalog: CutCatalog,
        macro_names: Sequence[str],
        business_cut_ids: Iterable[str] | None,
        utility_cut_name: str | None = None,
    ) -> tuple[str, ...]:
        """
        Ordered cut ids to display for the selected business.

        Args:
            catalog: Full cut catalog.
            macro_names: Macro-cut names in display order.
            business_cut_ids: Cut ids selected by the business; ``None`` when
                no business is selected (nothing is displayed).
            utility_cut_name: Always-present handling placeholder ("Frío").

        Returns:
            Tuple of cut ids.
        """
        if business_cut_ids is None:
            return ()
        selected = frozenset(business_cut_ids)

        display: list[str] = []
        for macro_name in macro_names:
            macro = catalog.find_by_name(macro_name)
            if macro is None:
                logger.warning(
                    "macro_not_in_catalog", extra={"macro_name": macro_name}
                )
                continue

            children = catalog.children_of(macro_name)
            sub_cut_ids = {c.id for c in children if not c.is_fixed_cost}
            if sub_cut_ids.isdisjoint(selected):
                display.append(macro.id)
            else:
                display.extend(c.id for c in children)

        if utility_cut_name:
            utility = catalog.find_by_name(utility_cut_name)
            if utility is not None:
                display.append(utility.id)

        logger.debug(
            "display_cuts_resolved",
            extra={"cut_count": len(display)},
        )
        return tuple(display)


def total_percentage(catalog: CutCatalog, cut_ids: Iterable[str]) -> Decimal:
    """Sum of the displayed cuts' carcass shares (expected to be close to 100)."""
    total = ZERO
    for cut_id in cut_ids:
        cut = catalog.get(cut_id)
        if cut is None:
            continue
        total += cut.percentage
    return total
