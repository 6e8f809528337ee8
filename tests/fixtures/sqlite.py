import pytest
import sqlrecord as sr
from sqlrecord import Mapper

from tests.fixtures.models import Comment, Post, Tag, User


@pytest.fixture
def sqlite_conn():
    """Create an in-memory SQLite database for testing"""
    conn = sr.connect({
        'drivername': 'sqlite',
        'database': ':memory:'
    })
    yield conn
    conn.close()


@pytest.fixture
def mapper(sqlite_conn):
    """Mapper over the in-memory database with all test record types registered."""
    mapper = Mapper(sqlite_conn)
    for record_type in (User, Post, Tag, Comment):
        mapper.register(record_type)
    return mapper


@pytest.fixture
def mark(mapper):
    """A stored user, fetched back so its id is known."""
    user = User(username='mark', password='x')
    mapper.create(user)
    stored = User(username='mark')
    mapper.fetch(stored)
    return stored
