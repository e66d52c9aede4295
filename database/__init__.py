"""Database module for managing connections to CockroachDB.

This module handles:
- Database connection pool initialization
- Schema management
- Connection lifecycle

The pool is created once by the process entrypoint and handed explicitly to
the components that need it.
"""

import logging
import ssl
from typing import Optional, Dict, Any
import backoff
import asyncpg
from urllib.parse import urlparse, parse_qs

from .exceptions import DatabaseError, DatabaseSchemaError, TransactionConflictError
from .lib.schema_manager import SchemaManager

logger = logging.getLogger(__name__)

def _get_ssl_context() -> ssl.SSLContext:
    """Create SSL context for CockroachDB Cloud connections."""
    ssl_context = ssl.create_default_context()
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.check_hostname = True
    return ssl_context

def _get_connection_kwargs(db_url: str) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    Args:
        db_url: Database connection URL

    Returns:
        Dict of connection parameters
    """
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)

    kwargs: Dict[str, Any] = {
        'server_settings': {
            'statement_timeout': '60000',  # 1 minute
        }
    }

    # Local insecure clusters run with sslmode=disable
    sslmode = params.get('sslmode', ['require'])[0]
    if sslmode != 'disable':
        kwargs['ssl'] = _get_ssl_context()

    if 'application_name' in params:
        kwargs['server_settings']['application_name'] = params['application_name'][0]

    return kwargs

@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def create_pool(db_url: str) -> asyncpg.Pool:
    """Create a connection pool, retrying while the cluster is unreachable.

    Args:
        db_url: Database connection URL

    Returns:
        The connection pool
    """
    conn_kwargs = _get_connection_kwargs(db_url)

    # Strip the query string, its parameters are passed as kwargs
    dsn = db_url.split('?', 1)[0]
    return await asyncpg.create_pool(
        dsn,
        min_size=2,
        max_size=20,
        max_inactive_connection_lifetime=300.0,  # 5 minutes
        command_timeout=60.0,
        **conn_kwargs
    )

async def init_db(db_url: str) -> asyncpg.Pool:
    """Initialize the database connection pool and schema.

    Args:
        db_url: Database connection URL

    Returns:
        The initialized connection pool

    Raises:
        ValueError: If database URL is not provided
        DatabaseSchemaError: If schema initialization fails
    """
    if not db_url:
        raise ValueError("Database URL not provided")

    pool = await create_pool(db_url)

    try:
        schema_manager = SchemaManager(pool)
        await schema_manager.initialize()

        logger.info("Database initialized")
        return pool

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        await close(pool)
        raise

async def close(pool: Optional[asyncpg.Pool]) -> None:
    """Close a connection pool created by init_db."""
    if pool is not None:
        await pool.close()

# Export public interface
__all__ = [
    'init_db',
    'create_pool',
    'close',
    'DatabaseError',
    'DatabaseSchemaError',
    'TransactionConflictError',
]
