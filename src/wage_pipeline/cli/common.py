"""
Options and helpers shared by the wage CLIs.
"""

import argparse

from wage_pipeline.core.models import Partition
from wage_pipeline.warehouse.connection import DatabaseConnectionPool


def add_db_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add database connection options.

    Unset options fall back to the DB_* environment variables.
    """
    parser.add_argument("--db-host", help="Database host (default: $DB_HOST or localhost)")
    parser.add_argument("--db-port", type=int, help="Database port (default: $DB_PORT or 5432)")
    parser.add_argument("--db-name", help="Database name (default: $DB_NAME or wages)")
    parser.add_argument("--db-user", help="Database user (default: $DB_USER or wages)")
    parser.add_argument("--db-password", help="Database password (default: $DB_PASSWORD)")


def add_partition_arguments(parser: argparse.ArgumentParser, required: bool = False) -> None:
    parser.add_argument("--location", required=required, help="Partition location (e.g. ucla)")
    parser.add_argument("--year", type=int, required=required, help="Partition year (e.g. 2023)")


def create_pool(args: argparse.Namespace, max_size: int = 10) -> DatabaseConnectionPool:
    """Build an unopened connection pool from parsed CLI options."""
    return DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
        max_size=max_size,
    )


def partition_from_args(args: argparse.Namespace) -> Partition | None:
    """Partition named by --location/--year, or None when either is missing."""
    if args.location and args.year is not None:
        return Partition(location=args.location, year=args.year)
    return None
