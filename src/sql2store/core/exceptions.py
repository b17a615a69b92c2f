"""
Custom exceptions for sql2store.

Provides a hierarchy of exceptions with enough context to tell a failed query
apart from a dropped line or an output channel that could not be flushed.
"""


class Sql2StoreError(Exception):
    """
    Base exception for all sql2store errors.

    All custom exceptions in the package inherit from this class,
    allowing callers to catch export-specific errors in one place.

    Example:
        >>> try:
        ...     pipeline.run()
        ... except Sql2StoreError as e:
        ...     print(f"Export error: {e}")
    """

    pass


class ConfigError(Sql2StoreError):
    """
    Raised when the export configuration is incomplete or invalid.

    Collects every problem found during validation so they can be reported
    together instead of one at a time.

    Attributes:
        errors: Human readable description of each problem

    Example:
        >>> raise ConfigError([
        ...     "No user specified; either include it in the config or pass it as a parameter",
        ...     "Query must start with 'SELECT'",
        ... ])
    """

    def __init__(self, errors: list[str]):
        """
        Initialize a ConfigError.

        Args:
            errors: List of validation error messages
        """
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid configuration")

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"ConfigError(errors={self.errors!r})"


class QueryError(Sql2StoreError):
    """
    Raised when the query cannot be prepared, executed or read.

    Fatal to the pipeline: the export unwinds, releases its resources and
    reports the failure.

    Example:
        >>> raise QueryError("Failed to execute query: syntax error near 'SELEC'")
    """

    pass


class StorageError(Sql2StoreError):
    """
    Raised when the write target cannot be resolved, created or opened.

    Example:
        >>> raise StorageError("Failed to create s3://exports/daily.txt: AccessDenied")
    """

    pass


class WriteError(Sql2StoreError):
    """
    Raised by a write channel when a single chunk of bytes could not be written.

    The sink records these and keeps going; they never end an export on their own.

    Attributes:
        original_error: The underlying transport exception

    Example:
        >>> try:
        ...     channel.write(b"a~~b\\n")
        ... except WriteError as e:
        ...     print(e.original_error)
    """

    def __init__(self, original_error: Exception):
        """
        Initialize a WriteError.

        Args:
            original_error: The underlying exception that caused the failure
        """
        self.original_error = original_error

        message = (
            f"Failed to write to output channel: "
            f"{type(original_error).__name__}: {original_error}"
        )
        super().__init__(message)

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"WriteError(original_error={self.original_error!r})"


class CloseError(Sql2StoreError):
    """
    Raised when a resource fails to flush or close after the row stream ended.

    Lines reported as written may not have reached storage, so callers must
    treat this as fatal rather than report a completed export.

    Attributes:
        resource: Which resource failed ("cursor", "output channel" or "connection")
        original_error: The underlying exception that caused the failure

    Example:
        >>> raise CloseError(resource="output channel", original_error=OSError("flush failed"))
    """

    def __init__(self, resource: str, original_error: Exception):
        """
        Initialize a CloseError.

        Args:
            resource: Name of the resource that failed to close
            original_error: The underlying exception that caused the failure
        """
        self.resource = resource
        self.original_error = original_error

        message = (
            f"Failed to close {resource} (possible loss of data): "
            f"{type(original_error).__name__}: {original_error}"
        )
        super().__init__(message)

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"CloseError(resource={self.resource!r}, "
            f"original_error={self.original_error!r})"
        )
