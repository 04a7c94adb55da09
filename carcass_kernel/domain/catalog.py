"""
Module: carcass_kernel.domain.catalog
Responsibility:
    Reference data for a quotation: the cut catalog with its macro/sub-cut
    relationships, the cost item catalog, and business pricing profiles.

Architecture position:
    Kernel > Domain.  Immutable records consumed by the engines; loaded by
    ``carcass_kernel.services.catalog_service`` or built directly in tests.

Invariants enforced:
    - Cuts are identified by ``id``; ``name`` is a display label only.
    - Catalog lookups never raise: a miss returns ``None`` (or an empty
      tuple) so stale references can be skipped by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from carcass_kernel.domain.values import to_decimal


@dataclass(frozen=True)
class Cut:
    """
    A cut of the half carcass.

    ``percentage`` is the cut's share of total carcass weight (0-100).
    ``macro`` is the *name* of the parent macro-cut, as delivered by the
    catalog provider; ``CutCatalog.macro_of`` resolves it to a Cut.
    """

    id: str
    name: str
    percentage: Decimal
    macro: str | None = None
    is_fixed_cost: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "percentage", to_decimal(self.percentage, "percentage"))


@dataclass(frozen=True)
class CostItem:
    """A named operational cost category (labor, freezing, ...)."""

    id: str
    name: str
    category: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Business:
    """A pricing profile: the set of cut ids the business cares about."""

    id: str
    name: str
    cut_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.cut_ids, frozenset):
            object.__setattr__(self, "cut_ids", frozenset(self.cut_ids))


class CutCatalog:
    """
    Immutable, id-indexed view over the full cut catalog.

    Contract:
        Preserves the order in which cuts were supplied; every listing
        method returns cuts in that order.
    Guarantees:
        - ``get`` / ``find_by_name`` / ``macro_of`` return ``None`` on miss.
        - ``children_of`` returns an empty tuple for unknown macros.
    Non-goals:
        - Does not validate that sibling percentages add up to the macro's
          share; catalog data may legitimately be off by rounding.
    """

    def __init__(self, cuts: Iterable[Cut]):
        ordered: dict[str, Cut] = {}
        for cut in cuts:
            ordered[cut.id] = cut
        self._by_id = ordered
        self._by_name: dict[str, Cut] = {}
        for cut in ordered.values():
            # First occurrence wins when names collide
            self._by_name.setdefault(cut.name, cut)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self):
        return iter(self._by_id.values())

    def __contains__(self, cut_id: object) -> bool:
        return cut_id in self._by_id

    @property
    def cuts(self) -> tuple[Cut, ...]:
        return tuple(self._by_id.values())

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._by_id)

    def get(self, cut_id: str) -> Cut | None:
        return self._by_id.get(cut_id)

    def find_by_name(self, name: str) -> Cut | None:
        return self._by_name.get(name)

    def children_of(self, macro_name: str) -> tuple[Cut, ...]:
        """All cuts whose ``macro`` is ``macro_name``, fixed-cost included."""
        return tuple(c for c in self._by_id.values() if c.macro == macro_name)

    def macro_of(self, cut_id: str) -> Cut | None:
        """Parent macro-cut of ``cut_id``, if both exist."""
        cut = self._by_id.get(cut_id)
        if cut is None or not cut.macro:
            return None
        return self._by_name.get(cut.macro)

    def is_macro(self, cut_id: str) -> bool:
        """True if at least one catalog cut names this cut as its macro."""
        cut = self._by_id.get(cut_id)
        if cut is None:
            return False
        return any(c.macro == cut.name for c in self._by_id.values())

    def ids_for_names(self, names: Iterable[str]) -> frozenset[str]:
        """Resolve display names to ids, skipping names not in the catalog."""
        resolved = set()
        for name in names:
            cut = self._by_name.get(name)
            if cut is not None:
                resolved.add(cut.id)
        return frozenset(resolved)

    def name_of(self, cut_id: str) -> str:
        """Display label, falling back to the id for unknown cuts."""
        cut = self._by_id.get(cut_id)
        return cut.name if cut is not None else cut_id
