"""
Conexión a base de datos PostgreSQL

All database access goes through psycopg2. Repositories ask for a
dict-cursor connection so rows serialize straight into domain models.

Author: TM3
"""
import logging
import time

import psycopg2
from psycopg2.extras import RealDictCursor

from .config import settings
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _database_url() -> str:
    # Use settings.DATABASE_URL which loads from .env file
    database_url = settings.DATABASE_URL
    if not database_url:
        raise ConfigurationError("DATABASE_URL not configured")
    return database_url


def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Use this for API responses and repositories.

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM orders")
        results = cursor.fetchall()  # Returns list of dicts
        cursor.close()
        conn.close()
    """
    return psycopg2.connect(_database_url(), cursor_factory=RealDictCursor)


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0, cursor_factory=None):
    """
    Get a psycopg2 connection with automatic retry on connection failures

    Retries with exponential backoff on OperationalError (dropped SSL
    sessions, pooler restarts). Any other error fails immediately.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)
        cursor_factory: Optional cursor class (e.g. RealDictCursor)

    Returns:
        psycopg2 connection object

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = _database_url()
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(database_url, cursor_factory=cursor_factory)

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            # Don't retry on last attempt
            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")

    raise last_error
