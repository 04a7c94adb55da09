"""
EngineSettings schema.

Defines the human-authored, reviewable configuration for the quotation
engines.  YAML fragments are parsed into these types by the loader and
validated before ``get_active_config()`` hands them out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class TaxonomyDef:
    """Macro-cut order and the placeholder cuts."""

    macro_names: tuple[str, ...]
    utility_cut_name: str | None = None
    exempt_cut_names: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class CurrencyDef:
    vat_divisor: Decimal
    fallback_exchange_rate: Decimal


@dataclass(frozen=True)
class SessionDef:
    notes_max_length: int = 500
    default_cost_category: str = "Otros"


@dataclass(frozen=True)
class EngineSettings:
    """
    The complete, frozen runtime configuration.

    ``checksum`` identifies the source YAML; two settings objects with the
    same checksum were loaded from identical content.
    """

    config_id: str
    version: int
    taxonomy: TaxonomyDef
    currency: CurrencyDef
    session: SessionDef
    database_url: str
    checksum: str = ""

    # Flat accessors used by bridges and callers
    @property
    def macro_names(self) -> tuple[str, ...]:
        return self.taxonomy.macro_names

    @property
    def utility_cut_name(self) -> str | None:
        return self.taxonomy.utility_cut_name

    @property
    def exempt_cut_names(self) -> frozenset[str]:
        return self.taxonomy.exempt_cut_names

    @property
    def vat_divisor(self) -> Decimal:
        return self.currency.vat_divisor

    @property
    def fallback_exchange_rate(self) -> Decimal:
        return self.currency.fallback_exchange_rate

    @property
    def notes_max_length(self) -> int:
        return self.session.notes_max_length

    @property
    def default_cost_category(self) -> str:
        return self.session.default_cost_category
