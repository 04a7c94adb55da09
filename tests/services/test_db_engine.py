"""
Tests for the quotation store connection: transaction scope and setup errors.
"""

import pytest
from sqlalchemy import func, select

from carcass_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from carcass_kernel.models.business import BusinessModel
from carcass_kernel.services.business_service import BusinessService


@pytest.fixture
def memory_store():
    init_engine_from_url("sqlite://")
    create_tables()
    yield
    reset_engine()


def _business_count() -> int:
    db = get_session()
    try:
        return db.scalar(select(func.count()).select_from(BusinessModel))
    finally:
        db.close()


class TestSessionScope:
    def test_commits_on_success(self, memory_store):
        with session_scope() as db:
            BusinessService(db).create_business("Mayorista Norte")

        assert _business_count() == 1

    def test_rolls_back_and_reraises(self, memory_store, captured_logs):
        with pytest.raises(RuntimeError, match="abort"):
            with session_scope() as db:
                BusinessService(db).create_business("Mayorista Norte")
                raise RuntimeError("abort")

        assert _business_count() == 0
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())


class TestEngineSetup:
    def test_session_before_init_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_session()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()

    def test_sqlite_foreign_keys_are_on(self, memory_store):
        with get_engine().connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1

    def test_connection_is_logged(self, captured_logs):
        init_engine_from_url("sqlite://")
        try:
            record = next(r for r in captured_logs() if r["message"] == "database_connected")
            assert record["dialect"] == "sqlite"
            assert record["database"] == ":memory:"
        finally:
            reset_engine()
