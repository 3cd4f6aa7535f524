"""
Query targets and the pooled database.

A query target is anything the statement executor can run against: it hands
out a connection, takes it back, and exposes its dialect strategy and
executor. Two implementations exist and share nothing but that shape:

1. `Database` - every acquire checks a connection out of a SQLAlchemy pool
2. `Transaction` - every acquire returns the one connection it pins

SQLAlchemy is used only for engines and pooling; statements run directly on
the DBAPI connection handed out by `engine.raw_connection()`.
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import Any, Protocol, runtime_checkable

import sqlalchemy as sa
from miniorm.dialect import DialectStrategy, get_strategy, get_strategy_class
from miniorm.exceptions import ConnectionFailure, DatabaseError, translate_errors
from miniorm.executor import StatementExecutor
from miniorm.options import DatabaseOptions
from miniorm.transaction import Transaction
from miniorm.utils import get_raw_connection
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'QueryTarget',
    'Database',
    'connect',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()

_POOL_SIZING_KWARGS = ('pool_size', 'max_overflow', 'pool_timeout', 'pool_recycle')


@runtime_checkable
class QueryTarget(Protocol):
    """Connection source plus execution context for the statement executor."""

    def acquire_connection(self) -> Any:
        ...

    def release_connection(self, connection: Any) -> None:
        ...

    @property
    def dialect(self) -> DialectStrategy:
        ...

    @property
    def statement_executor(self) -> StatementExecutor:
        ...


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines are cached per options so that every `connect()` with the same
    settings shares one pool.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy_class(options.drivername)()
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False}

        if not options.use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = options.pool_max_connections
            engine_kwargs['pool_recycle'] = options.pool_max_idle_time
            engine_kwargs['pool_timeout'] = options.pool_wait_timeout
            engine_kwargs['max_overflow'] = 10
            engine_kwargs['pool_pre_ping'] = True
            engine_kwargs['pool_reset_on_return'] = 'rollback'

        dialect_kwargs = strategy.get_engine_kwargs(options)
        if 'poolclass' in dialect_kwargs:
            for name in _POOL_SIZING_KWARGS:
                engine_kwargs.pop(name, None)
        engine_kwargs.update(dialect_kwargs)
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        @sa.event.listens_for(engine, 'connect')
        def _configure(dbapi_connection, connection_record):
            strategy.configure_connection(dbapi_connection)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class Database:
    """Pooled, non-transactional query target.

    Each acquire checks out a connection from the engine's pool and puts it
    in auto-commit mode; each release returns it. Safe to share between
    threads as long as each acquired connection stays on its thread.

    Args:
        engine: SQLAlchemy engine (anything with ``raw_connection()``)
        dialect: Dialect strategy matching the engine
        options: The options the engine was built from, if any
        statement_executor: Executor to expose; a default one otherwise
    """

    def __init__(self, engine: Engine, dialect: DialectStrategy,
                 options: DatabaseOptions | None = None,
                 statement_executor: StatementExecutor | None = None) -> None:
        self.engine = engine
        self._dialect = dialect
        self.options = options
        self._statement_executor = statement_executor or StatementExecutor()

    def __repr__(self) -> str:
        return f'Database({self._dialect.dialect_name!r})'

    @property
    def dialect(self) -> DialectStrategy:
        return self._dialect

    @property
    def statement_executor(self) -> StatementExecutor:
        return self._statement_executor

    def acquire_connection(self) -> Any:
        """Check a connection out of the pool in auto-commit mode.

        Raises
            ConnectionFailure: If the pool cannot supply a connection
        """
        with translate_errors(ConnectionFailure):
            connection = self.engine.raw_connection()
        try:
            with translate_errors(ConnectionFailure):
                self._dialect.enable_autocommit(get_raw_connection(connection))
        except DatabaseError:
            try:
                connection.close()
            except Exception as e:
                logger.debug(f'Error returning connection after failed setup: {e}')
            raise
        return connection

    def release_connection(self, connection: Any) -> None:
        """Return a connection to the pool."""
        with translate_errors():
            connection.close()

    def transaction(self) -> Transaction:
        """Start a transaction pinned to one pooled connection."""
        return Transaction(self)


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Database:
    """Create a pooled query target

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Database query target; connections are opened lazily per statement
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)
    dialect = get_strategy(options.drivername, options.null_bind_strategy)
    return Database(engine, dialect, options)
