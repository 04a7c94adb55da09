"""
Configuration Validator (``carcass_config.validator``).

Responsibility
--------------
Checks a parsed ``EngineSettings`` for structural problems before
``get_active_config()`` hands it out.

Invariants enforced
-------------------
* At least one macro-cut, no duplicates.
* ``vat_divisor`` and ``fallback_exchange_rate`` are positive.
* ``notes_max_length`` is positive.

Failure modes
-------------
* Validation errors  -> the configuration MUST NOT be used.
* Validation warnings  -> usable, but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from carcass_config.schema import EngineSettings


@dataclass
class ConfigValidationResult:
    """``is_valid`` returns ``True`` only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_settings(settings: EngineSettings) -> ConfigValidationResult:
    result = ConfigValidationResult()

    macros = settings.macro_names
    if not macros:
        result.add_error("taxonomy.macro_names must list at least one macro-cut")
    if len(set(macros)) != len(macros):
        result.add_error(f"taxonomy.macro_names has duplicates: {list(macros)}")
    if settings.utility_cut_name and settings.utility_cut_name in macros:
        result.add_error(
            f"utility cut {settings.utility_cut_name!r} cannot also be a macro-cut"
        )
    overlap = settings.exempt_cut_names & set(macros)
    if overlap:
        result.add_warning(f"macro-cuts listed as exempt: {sorted(overlap)}")

    if settings.vat_divisor <= 0:
        result.add_error("currency.vat_divisor must be positive")
    if settings.fallback_exchange_rate <= 0:
        result.add_error("currency.fallback_exchange_rate must be positive")
    if settings.notes_max_length <= 0:
        result.add_error("session.notes_max_length must be positive")
    if not settings.default_cost_category.strip():
        result.add_error("session.default_cost_category must not be blank")

    return result
