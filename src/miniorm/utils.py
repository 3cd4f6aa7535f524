"""Low-level connection utilities with no internal dependencies.

These work with any connection type (SQLAlchemy pool proxies or raw DBAPI
connections) and import nothing from other miniorm modules.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a pool proxy."""
    raw_conn = connection
    if hasattr(connection, 'driver_connection'):
        raw_conn = connection.driver_connection
    return raw_conn


def release_quietly(target: Any, connection: Any) -> None:
    """Release a connection to its target, logging and discarding any error."""
    try:
        target.release_connection(connection)
    except Exception as e:
        logger.debug(f'Error releasing connection: {e}')
