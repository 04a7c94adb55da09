"""
carcass_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.  Returns a frozen
    ``EngineSettings``.

Architecture position:
    Configuration -- YAML-driven settings, validated on load.
    This package sits above ``carcass_kernel`` and ``carcass_engines`` and
    below ``carcass_services``.  The kernel and the engines MUST NEVER
    import from ``carcass_config``; ``carcass_config.bridges`` translates
    settings into engine parameter objects.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Validation: the set must pass ``validate_settings`` before use.
    - Deterministic checksum: the same YAML always yields the same
      ``EngineSettings.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ValueError`` -- validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``CARCASS_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying saved quotations back to the settings that priced them.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from carcass_config.loader import ROOT_FILE, load_settings
from carcass_config.schema import EngineSettings
from carcass_config.validator import validate_settings
from carcass_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DATABASE_URL_ENV = "CARCASS_DATABASE_URL"


def get_active_config(
    config_dir: Path | None = None,
    name: str = "default",
) -> EngineSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to carcass_config/sets/.
        name: Configuration set (sub-directory) name.

    Returns:
        EngineSettings with the database URL taken from
        ``CARCASS_DATABASE_URL`` when that variable is set.

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ValueError: If validation fails.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    set_dir = sets_dir / name
    if not (set_dir / ROOT_FILE).is_file():
        raise FileNotFoundError(
            f"No configuration set named '{name}' in {sets_dir}"
        )

    settings = load_settings(set_dir)

    validation = validate_settings(settings)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"detail": warning})

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        settings = replace(settings, database_url=database_url)

    _logger.info(
        "CARCASS_CONFIG_TRACE",
        extra={
            "trace_type": "CARCASS_CONFIG_TRACE",
            "config_set_id": settings.config_id,
            "config_set_version": settings.version,
            "checksum": settings.checksum,
            "macro_count": len(settings.macro_names),
            "exempt_cut_count": len(settings.exempt_cut_names),
            "database_url_overridden": bool(database_url),
        },
    )
    return settings


__all__ = ["EngineSettings", "get_active_config"]
