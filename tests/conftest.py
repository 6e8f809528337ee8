import pathlib
import site

import pytest
from sqlrecord.connection import DB
from sqlrecord.types import reset_type_registry

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def reset_process_state():
    """Restore the type registry and the shared connection around each test."""
    reset_type_registry()
    DB.reset()
    yield
    reset_type_registry()
    DB.reset()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.sqlite',
]
