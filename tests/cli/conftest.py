# ABOUTME: Pytest fixtures for tests/cli directory
# ABOUTME: Adds project root and backend to Python path for CLI imports

import sys
import os

import pytest

# Add project root directory to Python path for all CLI test imports
project_root = os.path.join(os.path.dirname(__file__), '..', '..')
sys.path.insert(0, os.path.abspath(project_root))
sys.path.insert(0, os.path.abspath(os.path.join(project_root, 'backend')))


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a throwaway database and a known admin password."""
    db_path = tmp_path / 'cli.db'
    monkeypatch.setenv('ENVIRONMENT', 'development')
    monkeypatch.setenv('DATABASE_PATH', str(db_path))
    monkeypatch.setenv('SESSION_DIR', str(tmp_path / 'sessions'))
    monkeypatch.setenv('ADMIN_USERNAME', 'admin')
    monkeypatch.setenv('ADMIN_EMAIL', 'admin@stockinfo.com')
    monkeypatch.setenv('ADMIN_PASSWORD', 'cli-admin-pass')
    return db_path
