"""
Fixtures for SQLite integration tests.
"""
import pytest


@pytest.fixture
def sqlite_file_dsn(tmp_path):
    """DSN of a file-based SQLite database removed after the test."""
    return f'sqlite:///{tmp_path / "app.db"}'
