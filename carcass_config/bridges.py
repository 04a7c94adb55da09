"""
Config -> Engine Bridges.

Functions that convert ``EngineSettings`` into the parameter objects the
engines and the workbench accept.  These live in carcass_config (the
producer) because engines and the kernel must never import carcass_config.

Usage:
    from carcass_config import get_active_config
    from carcass_config.bridges import to_evaluation_settings

    settings = get_active_config()
    evaluation_settings = to_evaluation_settings(settings)
"""

from __future__ import annotations

from carcass_config.schema import EngineSettings
from carcass_engines.quotation import EvaluationSettings


def to_evaluation_settings(settings: EngineSettings) -> EvaluationSettings:
    """Build the engine-side settings value for ``evaluate_quotation``."""
    return EvaluationSettings(
        macro_names=settings.macro_names,
        utility_cut_name=settings.utility_cut_name,
        exempt_cut_names=settings.exempt_cut_names,
        vat_divisor=settings.vat_divisor,
        fallback_exchange_rate=settings.fallback_exchange_rate,
        notes_max_length=settings.notes_max_length,
        default_cost_category=settings.default_cost_category,
    )
