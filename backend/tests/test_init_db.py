"""Unit tests for init_db functionality."""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

MODERATION_TABLES = ["appeals", "audit_logs", "content_reports"]


@pytest.fixture
def fresh_engine():
    """An empty in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


class TestInitDb:
    """Tests for init_db function."""

    def test_creates_moderation_tables(self, fresh_engine):
        from init_db import init_db

        with patch("init_db.engine", fresh_engine):
            tables = init_db()

        assert tables == MODERATION_TABLES
        assert sorted(inspect(fresh_engine).get_table_names()) == MODERATION_TABLES

    def test_is_idempotent(self, fresh_engine):
        from init_db import init_db

        with patch("init_db.engine", fresh_engine):
            init_db()
            tables = init_db()

        assert tables == MODERATION_TABLES
