"""
ODBC connection bootstrap.

Opens the read connection used by QuerySource. Kept in its own module so that
pyodbc (and the system unixODBC library it links against) is only needed when
an export actually connects to a database.
"""

import logging

import pyodbc

from ..core.config import ExportConfig
from ..core.exceptions import QueryError

logger = logging.getLogger(__name__)


def build_connection_string(config: ExportConfig) -> str:
    """
    Combine the optional driver with the configured connection string.

    Args:
        config: Resolved export configuration

    Returns:
        ODBC connection string without credentials

    Example:
        >>> build_connection_string(config)  # driver="ODBC Driver 18 for SQL Server"
        'DRIVER={ODBC Driver 18 for SQL Server};SERVER=db;DATABASE=sales'
    """
    if config.driver:
        return f"DRIVER={{{config.driver}}};{config.database}"
    return config.database


def connect(config: ExportConfig) -> "pyodbc.Connection":
    """
    Open a read connection for the export.

    Credentials are passed as keywords so they never end up in the logged
    connection string.

    Args:
        config: Resolved export configuration

    Returns:
        Open pyodbc connection

    Raises:
        QueryError: If the connection cannot be established
    """
    connection_string = build_connection_string(config)
    logger.debug(f"Connecting with {connection_string!r} as {config.user!r}")

    try:
        connection = pyodbc.connect(
            connection_string,
            user=config.user,
            password=config.password,
            readonly=True,
        )
    except pyodbc.Error as e:
        raise QueryError(
            f"Failed to connect to database: {e}. "
            f"Check your connection string and network connectivity."
        ) from e

    return connection
