"""
Shared pytest fixtures for all test suites.
"""
import os
import sys

import pytest

# Add backend directory to Python path for all test imports
# This must happen at module level, before any test collection,
# to avoid import conflicts when pytest collects from multiple directories
backend_path = os.path.join(os.path.dirname(__file__), '..', 'backend')
sys.path.insert(0, os.path.abspath(backend_path))


@pytest.fixture
def test_db(tmp_path):
    """A fresh SQLite database with the full schema, on a temporary file."""
    from database import Database

    db = Database(str(tmp_path / 'stockinfo_test.db'))
    db.init_schema()
    yield db
    db.close()
