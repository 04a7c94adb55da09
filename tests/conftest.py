"""
Pytest fixtures for the carcass quotation test suite.

Provides:
- Structured logging configured for the whole run, plus a log capture
- A small in-memory cut catalog with all four macros, their sub-cuts,
  a fixed-cost child and the "Frío" utility cut
- In-memory SQLite database sessions (one fresh database per test)
"""

import json
import logging
from collections.abc import Generator
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from carcass_engines.quotation import EvaluationSettings
from carcass_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from carcass_kernel.domain.catalog import Business, CostItem, Cut, CutCatalog
from carcass_kernel.domain.session import QuotationSession, new_session
from carcass_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from carcass_kernel.services.catalog_service import CatalogService

# (id, name, percentage, macro, is_fixed_cost)
CUT_ROWS = (
    ("ral", "Ral", "25", None, False),
    ("nalga", "Nalga", "10", "Ral", False),
    ("bola", "Bola de lomo", "12", "Ral", False),
    ("manipuleo_ral", "Manipuleo de ral", "3", "Ral", True),
    ("rueda", "Rueda", "25", None, False),
    ("cuadrada", "Cuadrada", "15", "Rueda", False),
    ("peceto", "Peceto", "10", "Rueda", False),
    ("parrillero", "Parrillero", "30", None, False),
    ("asado", "Asado", "20", "Parrillero", False),
    ("vacio", "Vacío", "10", "Parrillero", False),
    ("delantero", "Delantero", "20", None, False),
    ("paleta", "Paleta", "12", "Delantero", False),
    ("aguja", "Aguja", "8", "Delantero", False),
    ("frio", "Frío", "0", None, False),
)

COST_ITEM_ROWS = (
    {"name": "Faena", "category": "Mano de obra", "description": "Slaughter labor"},
    {"name": "Despostada", "category": "Mano de obra"},
    {"name": "Flete", "category": "Logística"},
    {"name": "Bolsas", "category": None},
)

EXEMPT_NAMES = frozenset({"Frío", "Manipuleo de ral"})
MACRO_IDS = ("ral", "rueda", "parrillero", "delantero")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture carcass_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "variance_reported" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("carcass_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


def make_catalog() -> CutCatalog:
    return CutCatalog(
        Cut(id=cid, name=name, percentage=Decimal(pct), macro=macro, is_fixed_cost=fixed)
        for cid, name, pct, macro, fixed in CUT_ROWS
    )


@pytest.fixture
def catalog() -> CutCatalog:
    return make_catalog()


@pytest.fixture
def cost_items() -> tuple[CostItem, ...]:
    return (
        CostItem(id="faena", name="Faena", category="Mano de obra"),
        CostItem(id="despostada", name="Despostada", category="Mano de obra"),
        CostItem(id="flete", name="Flete", category="Logística"),
        CostItem(id="bolsas", name="Bolsas", category=None),
    )


@pytest.fixture
def settings() -> EvaluationSettings:
    return EvaluationSettings(exempt_cut_names=EXEMPT_NAMES)


@pytest.fixture
def wholesale() -> Business:
    """Buys every macro whole."""
    return Business(id="wholesale", name="Mayorista Norte")


@pytest.fixture
def butcher() -> Business:
    """Buys the Ral broken into sub-cuts, everything else whole."""
    return Business(id="butcher", name="Carnicería Sur", cut_ids=frozenset({"nalga"}))


@pytest.fixture
def session(catalog) -> QuotationSession:
    """Empty session with a loaded exchange rate."""
    return new_session(catalog, exchange_rate=Decimal("1000"))


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """A fresh in-memory SQLite database per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    db = get_session()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        reset_engine()


def seed_rows() -> list[dict]:
    return [
        {"name": name, "percentage": pct, "macro": macro, "is_fixed_cost": fixed}
        for _, name, pct, macro, fixed in CUT_ROWS
    ]


@pytest.fixture
def stored_catalog(db_session) -> CutCatalog:
    """The sample catalog seeded into the database (UUID ids)."""
    return CatalogService(db_session).seed_cuts(seed_rows())


@pytest.fixture
def stored_cost_items(db_session) -> tuple[CostItem, ...]:
    return CatalogService(db_session).seed_cost_items(COST_ITEM_ROWS)
