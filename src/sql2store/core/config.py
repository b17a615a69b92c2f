"""
Export configuration.

ExportConfig is the fully-resolved description of one export: where to read
from, what to run and where to write. It is assembled from an optional JSON
file, explicit overrides (usually the command line) and a couple of
environment variables, then validated in one go so every problem is reported
together.

Config file format (JSON):
    {
      "driver": "ODBC Driver 18 for SQL Server",
      "database": "SERVER=127.0.0.1;DATABASE=my_database",
      "user": "my_user",
      "password": "my_password",
      "bucket": "foo",
      "file": "bar/bla.txt",
      "separator": "~~",
      "query": "SELECT * FROM foo"
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..steps.line_formatter import DEFAULT_SEPARATOR
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

# S3 canned ACLs accepted for newly created objects
AccessPolicy = Literal[
    "private",
    "public-read",
    "public-read-write",
    "authenticated-read",
    "aws-exec-read",
    "bucket-owner-read",
    "bucket-owner-full-control",
]

StorageKind = Literal["s3", "file"]

MIN_PART_SIZE = 5 * 1024 * 1024
DEFAULT_PART_SIZE = 8 * 1024 * 1024
DEFAULT_CLOSE_FAILURE_EXIT_CODE = 2

MISSING_PARAM = "either include it in the config or pass it as a parameter"

# Used only when neither the file nor the overrides provide a value
ENV_FALLBACKS = {
    "database": "SQL2STORE_DATABASE",
    "password": "SQL2STORE_PASSWORD",
}


class ExportConfig(BaseModel):
    """
    Resolved settings for a single export run.

    Attributes:
        driver: Optional ODBC driver name, prepended to the connection string
        database: ODBC connection string (e.g. "SERVER=host;DATABASE=db" or "DSN=name")
        user: Database user
        password: Database password (never included in repr)
        bucket: Destination bucket (a directory for the "file" storage)
        file: Destination object path inside the bucket
        separator: Column separator; None falls back to "~~", "" is allowed
        query: SELECT statement to export
        storage: Storage backend, "s3" or "file"
        access_policy: Canned ACL applied when the destination object is created;
                       None keeps the bucket default
        close_failure_exit_code: Process exit code when the output cannot be
                                 flushed/closed after the export
        part_size: Multipart upload part size in bytes (S3 minimum is 5 MiB)

    Example:
        >>> config = ExportConfig(
        ...     database="DSN=warehouse",
        ...     user="reporter",
        ...     password="secret",
        ...     bucket="exports",
        ...     file="daily/orders.txt",
        ...     query="SELECT id, total FROM orders",
        ... )
        >>> config.destination_url
        's3://exports/daily/orders.txt'
    """

    driver: Optional[str] = None
    database: str
    user: str
    password: str = Field(..., repr=False)
    bucket: str
    file: str
    separator: str = DEFAULT_SEPARATOR
    query: str
    storage: StorageKind = "s3"
    access_policy: Optional[AccessPolicy] = None
    close_failure_exit_code: int = Field(DEFAULT_CLOSE_FAILURE_EXIT_CODE, ge=1, le=255)
    part_size: int = Field(DEFAULT_PART_SIZE, ge=MIN_PART_SIZE)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @field_validator("separator", mode="before")
    @classmethod
    def _default_separator(cls, value: Any) -> Any:
        return DEFAULT_SEPARATOR if value is None else value

    @field_validator("separator")
    @classmethod
    def _note_empty_separator(cls, value: str) -> str:
        if value == "":
            logger.info("Column separator is empty")
        return value

    @field_validator("query")
    @classmethod
    def _require_select(cls, value: str) -> str:
        if not value.startswith("SELECT"):
            raise ValueError("Query must start with 'SELECT'")
        return value

    @property
    def destination_url(self) -> str:
        """Human readable destination, e.g. "s3://bucket/path"."""
        if self.storage == "file":
            return Path(self.bucket, self.file).as_uri()
        return f"{self.storage}://{self.bucket}/{self.file}"


def load_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """
    Read a JSON config file.

    An unreadable or malformed file is not fatal: a warning is logged and an
    empty base is returned, so command line values can still complete it.

    Args:
        path: Path to the JSON file

    Returns:
        Mapping of setting name to value
    """
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Error reading configuration file {path}, using empty as base: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Configuration file {path} does not contain a JSON object, using empty as base")
        return {}

    return data


def resolve_config(
    config_file: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ExportConfig:
    """
    Build and validate an ExportConfig.

    Precedence, highest first: overrides that are not None, the config file,
    then the environment fallbacks in ENV_FALLBACKS.

    Args:
        config_file: Optional path to a JSON config file
        overrides: Values that replace file settings (None values are ignored)
        environ: Environment to read fallbacks from (defaults to os.environ)

    Returns:
        Validated ExportConfig

    Raises:
        ConfigError: With one message per problem if validation fails
    """
    data: dict[str, Any] = load_config_file(config_file) if config_file else {}

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    env = os.environ if environ is None else environ
    for key, var in ENV_FALLBACKS.items():
        if data.get(key) is None and env.get(var):
            data[key] = env[var]

    try:
        return ExportConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(describe_validation_errors(e)) from e


def describe_validation_errors(error: ValidationError) -> list[str]:
    """
    Turn a pydantic ValidationError into operator-facing messages.

    Args:
        error: The validation error raised by ExportConfig

    Returns:
        One message per failing field
    """
    messages = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "config"
        kind = item["type"]

        if kind == "missing":
            messages.append(f"No {field} specified; {MISSING_PARAM}")
        elif kind == "extra_forbidden":
            messages.append(f"Unknown setting '{field}'")
        elif kind == "value_error":
            messages.append(item["msg"].removeprefix("Value error, "))
        else:
            messages.append(f"Invalid {field}: {item['msg']}")
    return messages
