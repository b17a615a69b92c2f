"""
Core components for sql2store.

Includes pipeline orchestration, configuration, run statistics and exception handling.
"""

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

__all__ = [
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
]
