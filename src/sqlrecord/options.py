from dataclasses import dataclass

import sqlalchemy as sa
from sqlrecord.strategy import get_available_dialects, get_strategy_class
from sqlrecord.strategy import is_supported_dialect

__all__ = [
    'DatabaseOptions',
]


@dataclass
class DatabaseOptions:
    """Options

    supported driver names: `postgresql`, `sqlite`

    Connection pooling options:
    - use_pool: Whether to use SQLAlchemy's QueuePool (default: False, NullPool)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)

    @classmethod
    def from_url(cls, url: str | sa.URL, username: str | None = None,
                 password: str | None = None) -> 'DatabaseOptions':
        """Build options from a connection string such as ``sqlite:///app.db``.

        Explicit ``username``/``password`` override the ones in the URL.
        """
        url = sa.make_url(url)
        timeout = url.query.get('connect_timeout')
        return cls(
            drivername=url.get_backend_name(),
            hostname=url.host,
            username=username or url.username,
            password=password or url.password,
            database=url.database,
            port=url.port or 0,
            timeout=int(timeout) if timeout else 0,
            )
