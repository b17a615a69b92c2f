"""
sql2store command line interface.

Usage
-----
sql2store -c conf/config.json s3://foo/bar/bla.txt SELECT \\* FROM foo
sql2store -c conf/config.json -u myuser -p "mypass" s3://foo/bar/bla.txt SELECT \\* FROM foo
sql2store -d "DSN=warehouse" -u me -p secret file:///tmp/exports/foo.txt SELECT id FROM foo

The optional config file provides the base; values on the command line
override it. Separator is optional (default is '~~'); all other settings must
be given in the config file or on the command line. When passed on the
command line, bucket and file are merged into a single destination URL.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence
from urllib.parse import unquote, urlparse

from botocore.exceptions import BotoCoreError

from sql2store import __version__
from sql2store.core.config import ExportConfig, resolve_config
from sql2store.core.exceptions import CloseError, ConfigError, Sql2StoreError
from sql2store.core.pipeline import ExportPipeline
from sql2store.storage import AbstractStorage, get_storage

logger = logging.getLogger("sql2store.cli")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

EPILOG = """\
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

Destinations: s3://<bucket>/<path> or file:///<directory>/<file>
"""


def parse_destination(url: str) -> dict[str, str]:
    """
    Split a destination URL into storage, bucket and file settings.

    Args:
        url: "s3://bucket/path/to/file" or "file:///dir/file"

    Returns:
        Dict with "storage", "bucket" and "file" keys

    Raises:
        ValueError: If the URL is not a supported destination

    Example:
        >>> parse_destination("s3://foo/bar/bla.txt")
        {'storage': 's3', 'bucket': 'foo', 'file': 'bar/bla.txt'}
        >>> parse_destination("file:///tmp/out/bla.txt")
        {'storage': 'file', 'bucket': '/tmp/out', 'file': 'bla.txt'}
    """
    parsed = urlparse(url)

    if parsed.scheme == "s3":
        key = parsed.path.lstrip("/")
        if not parsed.netloc or not key:
            raise ValueError(f"Destination {url!r} must look like s3://<bucket>/<path>")
        return {"storage": "s3", "bucket": parsed.netloc, "file": key}

    if parsed.scheme == "file":
        path = Path(unquote(parsed.path))
        if not path.name:
            raise ValueError(f"Destination {url!r} must name a file")
        return {"storage": "file", "bucket": str(path.parent), "file": path.name}

    raise ValueError(f"Unsupported destination {url!r}; use s3:// or file://")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sql2store",
        description="Export the result of a SQL query to an object storage file.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-c", "--config", default=None, help="JSON config file providing base settings.")
    p.add_argument("-dr", "--driver", default=None, help="ODBC driver name.")
    p.add_argument("-d", "--database", default=None, help="ODBC connection string.")
    p.add_argument("-u", "--user", default=None, help="Database user.")
    p.add_argument("-p", "--password", default=None, help="Database password.")
    p.add_argument("-s", "--separator", default=None, help="Column separator (default '~~').")
    p.add_argument(
        "--acl",
        dest="access_policy",
        default=None,
        help="Canned ACL for a newly created object, e.g. public-read (default: bucket default).",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("destination", nargs="?", default=None, help="s3://bucket/path or file:///dir/file")
    p.add_argument("query", nargs="*", help="SELECT statement (words are joined with spaces).")
    return p


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def collect_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """
    Turn parsed arguments into config overrides.

    A first positional that is not a URL is treated as the start of the query,
    so the destination can come from the config file.

    Raises:
        ConfigError: If the destination URL is malformed
    """
    words = list(args.query)
    destination = args.destination
    if destination is not None and "://" not in destination:
        words.insert(0, destination)
        destination = None

    overrides: dict[str, Any] = {
        "driver": args.driver,
        "database": args.database,
        "user": args.user,
        "password": args.password,
        "separator": args.separator,
        "access_policy": args.access_policy,
        "query": " ".join(words) if words else None,
    }

    if destination is not None:
        try:
            overrides.update(parse_destination(destination))
        except ValueError as e:
            raise ConfigError([str(e)]) from e

    return overrides


def _build_storage(config: ExportConfig) -> AbstractStorage:
    if config.storage == "s3":
        return get_storage("s3", part_size=config.part_size)
    return get_storage(config.storage)


def _open_connection(config: ExportConfig) -> Any:
    # Imported here so --help and config errors work without unixODBC installed
    from sql2store.sources.odbc import connect

    return connect(config)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one export from command line arguments.

    Returns:
        Process exit code: 0 on success, 1 for configuration, setup or query
        failures, config.close_failure_exit_code when output could not be
        flushed/closed after the last row
    """
    args_list = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()

    if not args_list or args_list[0] in ("help", "-h", "--help"):
        parser.print_help()
        return 0

    args = parser.parse_args(args_list)
    configure_logging(args.verbose)

    try:
        config = resolve_config(args.config, collect_overrides(args))
    except ConfigError as e:
        print("Configuration errors detected:", file=sys.stderr)
        for error in e.errors:
            print(f"  {error}", file=sys.stderr)
        print("Operation aborted.", file=sys.stderr)
        print("\nRun without command line arguments to display help.", file=sys.stderr)
        return 1

    logger.debug(f"Resolved configuration: {config!r}")

    try:
        storage = _build_storage(config)
        connection = _open_connection(config)
    except (Sql2StoreError, BotoCoreError) as e:
        logger.error(f"Exception during initiation, operation aborted: {e}")
        return 1

    try:
        ExportPipeline(config, connection, storage).run()
    except CloseError as e:
        logger.error(f"Exception while closing connections/channels (possible loss of data): {e}")
        return config.close_failure_exit_code
    except Sql2StoreError as e:
        logger.error(f"Export aborted: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
