"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import logging

import pytest

from tests import SqliteTestDatabase


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring a database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def sqlite_db():
    """Function-scoped temporary SQLite database with the engine schema."""
    db = SqliteTestDatabase()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def quiet_sqlalchemy():
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
