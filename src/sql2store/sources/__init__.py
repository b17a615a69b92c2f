"""
Row source implementations.

Sources execute the export query and stream its rows into the pipeline.
"""

from sql2store.sources.base import AbstractSource, Row
from sql2store.sources.query_source import QuerySource, to_text

# Lazy import for ODBC to avoid the pyodbc dependency when not needed
def __getattr__(name):
    if name == "connect":
        from sql2store.sources.odbc import connect
        return connect
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "AbstractSource",
    "Row",
    "QuerySource",
    "connect",
    "to_text",
]
