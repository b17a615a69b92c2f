"""
sql2store - Export the result of a SQL query to an object storage file.

Streams rows from a database cursor, serializes each one as a
separator-delimited line and writes the lines, in order, to a single object
in S3 (or a local file) while counting successes and failures.
"""

__version__ = "0.1.0"

# Core components
from sql2store.core.pipeline import ExportPipeline, PipelineState, run_export
from sql2store.core.config import ExportConfig, resolve_config
from sql2store.core.stats import RunStats, RunSummary
from sql2store.core.exceptions import (
    Sql2StoreError,
    ConfigError,
    QueryError,
    StorageError,
    WriteError,
    CloseError,
)

# Pipeline stages
from sql2store.sources.query_source import QuerySource
from sql2store.steps.line_formatter import LineFormatter, format_line
from sql2store.sinks.object_sink import ObjectSink

# Storage backends
from sql2store.storage.local import LocalStorage
from sql2store.storage.s3 import S3Storage

# Lazy import for the ODBC connection to avoid the pyodbc dependency when not needed
def __getattr__(name):
    if name == "connect":
        from sql2store.sources.odbc import connect
        return connect
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    # Version
    "__version__",
    # Core
    "ExportPipeline",
    "PipelineState",
    "run_export",
    "ExportConfig",
    "resolve_config",
    "RunStats",
    "RunSummary",
    "Sql2StoreError",
    "ConfigError",
    "QueryError",
    "StorageError",
    "WriteError",
    "CloseError",
    # Stages
    "QuerySource",
    "LineFormatter",
    "format_line",
    "ObjectSink",
    # Storage
    "LocalStorage",
    "S3Storage",
    # Connection
    "connect",
]
