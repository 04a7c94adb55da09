"""
Configuration Loader (``carcass_config.loader``).

Responsibility
--------------
Loads a configuration set's ``root.yaml`` and parses it into the frozen
``carcass_config.schema`` dataclasses.  This is internal tooling: the
single public entry point for runtime config is
``carcass_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on kernel
services or engines.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Monetary constants are parsed as ``Decimal`` from their string form.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  YAML for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric constants  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from carcass_config.schema import CurrencyDef, EngineSettings, SessionDef, TaxonomyDef

ROOT_FILE = "root.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{field} is not a number: {value!r}") from e


def parse_taxonomy(data: dict[str, Any]) -> TaxonomyDef:
    return TaxonomyDef(
        macro_names=tuple(data["macro_names"]),
        utility_cut_name=data.get("utility_cut_name"),
        exempt_cut_names=frozenset(data.get("exempt_cut_names") or ()),
    )


def parse_currency(data: dict[str, Any]) -> CurrencyDef:
    return CurrencyDef(
        vat_divisor=parse_decimal(data["vat_divisor"], "vat_divisor"),
        fallback_exchange_rate=parse_decimal(
            data["fallback_exchange_rate"], "fallback_exchange_rate"
        ),
    )


def parse_session(data: dict[str, Any]) -> SessionDef:
    defaults = SessionDef()
    return SessionDef(
        notes_max_length=int(data.get("notes_max_length", defaults.notes_max_length)),
        default_cost_category=data.get(
            "default_cost_category", defaults.default_cost_category
        ),
    )


def parse_settings(data: dict[str, Any], checksum: str = "") -> EngineSettings:
    """
    Parse an ``EngineSettings`` from the root dict of a configuration set.

    Raises:
        KeyError: if a required section or key is missing.
        ValueError: if a numeric constant cannot be parsed.
    """
    return EngineSettings(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        taxonomy=parse_taxonomy(data["taxonomy"]),
        currency=parse_currency(data["currency"]),
        session=parse_session(data.get("session") or {}),
        database_url=(data.get("database") or {}).get("url", "sqlite://"),
        checksum=checksum,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_settings(set_dir: Path) -> EngineSettings:
    """Load and parse the configuration set stored in ``set_dir``."""
    data = load_yaml_file(set_dir / ROOT_FILE)
    return parse_settings(data, checksum=compute_checksum(data))
