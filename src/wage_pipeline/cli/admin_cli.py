"""
Admin CLI for the wage warehouse.

Usage:
    wage-admin init-schema [--drop]
    wage-admin progress [--location <loc>]
    wage-admin summarize [--location <loc> --year <year>]
    wage-admin show-summary --location <loc> --year <year>
    wage-admin search [--name <text>] [--title <text>] [--location <loc>] [--year <year>] [--page N]
    wage-admin export-artifacts --output <dir> [--location <loc>]
"""

import argparse
import sys
from datetime import datetime

from psycopg import Error as PsycopgError

from wage_pipeline.aggregation import AggregationEngine
from wage_pipeline.aggregation.export import export_artifacts
from wage_pipeline.core.config import load_settings
from wage_pipeline.core.errors import WagePipelineError
from wage_pipeline.core.models import Partition
from wage_pipeline.observability.logger import get_logger
from wage_pipeline.warehouse import (
    PostgresArtifactStore,
    PostgresProgressLedger,
    PostgresWageStore,
    SchemaManager,
    SearchFilters,
    WageQueries,
)

from .common import add_db_arguments, add_partition_arguments, create_pool, partition_from_args

logger = get_logger(__name__)


def format_timestamp(ts: datetime | None) -> str:
    """Format timestamp for display."""
    return ts.strftime("%Y-%m-%d %H:%M:%S") if ts else "N/A"


def format_money(amount) -> str:
    return f"${amount:,.2f}" if amount is not None else "N/A"


def init_schema_command(args, pool):
    """Create (and optionally first drop) the warehouse tables."""
    manager = SchemaManager(pool)
    if args.drop:
        manager.drop_tables()
        print("Dropped warehouse tables.")
    manager.create_tables()
    print(f"Warehouse tables ready: {', '.join(manager.existing_tables())}")


def progress_command(args, pool):
    """Display the upload progress ledger."""
    rows = PostgresProgressLedger(pool).list_progress(args.location)

    if not rows:
        print("\nNo uploads recorded.")
        return

    print(f"\n{'=' * 100}")
    print(f"UPLOAD PROGRESS{f' - Location: {args.location}' if args.location else ''}")
    print(f"{'=' * 100}\n")
    print(f"{'Partition':<25} {'Status':<12} {'Uploaded':>18} {'%':>7}  {'Started':<20} {'Completed':<20}")
    print(f"{'-' * 100}")

    for row in rows:
        print(
            f"{str(row.partition):<25} {row.status.value:<12} "
            f"{f'{row.uploaded_records}/{row.total_records}':>18} {row.percent_complete:>6.1f}%  "
            f"{format_timestamp(row.started_at):<20} {format_timestamp(row.completed_at):<20}"
        )
        if row.error_message:
            print(f"    Error: {row.error_message}")

    print(f"\n{'=' * 100}\n")


def summarize_command(args, pool):
    """Regenerate artifacts for one partition or for all of them."""
    engine = AggregationEngine(
        PostgresWageStore(pool),
        PostgresArtifactStore(pool),
        settings=load_settings(args.config),
    )

    partition = partition_from_args(args)
    if partition is not None:
        results = {partition: engine.summarize(partition)}
    else:
        results = engine.summarize_all()

    print(f"\nRegenerated artifacts for {len(results)} partition(s):")
    for partition, (summary, pyramid, titles) in results.items():
        print(
            f"  {str(partition):<25} employees={summary.employee_count:<8} "
            f"brackets={len(pyramid.brackets):<3} titles={titles.unique_titles}"
        )


def show_summary_command(args, pool):
    """Display the stored summary and pyramid of one partition."""
    partition = Partition(location=args.location, year=args.year)
    store = PostgresArtifactStore(pool)
    summary = store.get_summary(partition)

    if summary is None:
        print(f"\nNo summary stored for {partition}. Run 'wage-admin summarize' first.")
        return

    print(f"\n{'=' * 60}")
    print(f"WAGE SUMMARY: {partition}")
    print(f"Generated: {format_timestamp(summary.generated_at)}")
    print(f"{'=' * 60}\n")
    print(f"  Employees:        {summary.employee_count:>16,}")
    print(f"  Total gross pay:  {format_money(summary.total_gross_pay):>16}")
    print(f"  Average:          {format_money(summary.avg_gross_pay):>16}")
    print(f"  Median:           {format_money(summary.median_gross_pay):>16}")
    print(f"  Std deviation:    {format_money(summary.std_dev):>16}")
    print(f"  Min / Max:        {format_money(summary.min_pay)} / {format_money(summary.max_pay)}")
    print(f"  Gini coefficient: {summary.gini_coefficient:>16}")

    print("\nPercentiles:")
    for key, value in summary.percentiles.items():
        print(f"  {key:<6} {format_money(value):>16}")

    pyramid = store.get_pyramid(partition)
    if pyramid and pyramid.brackets:
        print("\nPay Brackets:")
        for bracket in pyramid.brackets:
            print(f"  {bracket.range:<12} {bracket.count:>8} {bracket.percentage:>7}%  avg {format_money(bracket.avg_pay)}")

    titles = store.get_title_analysis(partition)
    if titles and titles.top_titles:
        print(f"\nTop Titles ({titles.unique_titles} distinct):")
        for stats in titles.top_titles[:args.top]:
            print(f"  {stats.title[:40]:<40} {stats.count:>6}  avg {format_money(stats.avg_pay)}  [{stats.category}]")

    print(f"\n{'=' * 60}\n")


def search_command(args, pool):
    """Search wage records, highest gross pay first."""
    filters = SearchFilters(
        name=args.name,
        title=args.title,
        location=args.location,
        year=args.year,
        page=args.page,
    )
    page = WageQueries(pool).search(filters)

    if not page.records:
        print("\nNo wage records found matching the criteria.")
        return

    print(f"\n{'=' * 100}")
    print(f"SEARCH RESULTS: {page.total_count} record(s), page {page.page} of {page.total_pages}")
    print(f"{'=' * 100}\n")
    print(f"{'Name':<30} {'Title':<35} {'Partition':<18} {'Gross Pay':>14}")
    print(f"{'-' * 100}")

    for record in page.records:
        print(
            f"{record.full_name[:30]:<30} {record.title[:35]:<35} "
            f"{str(record.partition):<18} {format_money(record.grosspay):>14}"
        )

    if page.has_next:
        print(f"\nMore results: --page {page.page + 1}")
    print()


def export_artifacts_command(args, pool):
    """Write stored artifacts as JSON files."""
    store = PostgresArtifactStore(pool)
    partitions = [summary.partition for summary in store.list_summaries(args.location)]
    written = export_artifacts(store, args.output, partitions)
    print(f"\nExported {len(written)} file(s) for {len(partitions)} partition(s) to {args.output}")


COMMANDS = {
    "init-schema": init_schema_command,
    "progress": progress_command,
    "summarize": summarize_command,
    "show-summary": show_summary_command,
    "search": search_command,
    "export-artifacts": export_artifacts_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wage-admin",
        description="Admin CLI for the wage warehouse",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global options
    parser.add_argument("--config", help="Pipeline YAML config (default: $WAGE_CONFIG or config/pipeline.yaml)")
    add_db_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-schema", help="Create the warehouse tables")
    init_parser.add_argument("--drop", action="store_true", help="Drop existing tables first (destroys data)")

    progress_parser = subparsers.add_parser("progress", help="Show upload progress")
    progress_parser.add_argument("--location", help="Filter by location")

    summarize_parser = subparsers.add_parser(
        "summarize",
        help="Regenerate artifacts for one partition, or all partitions when none is given"
    )
    add_partition_arguments(summarize_parser)

    show_parser = subparsers.add_parser("show-summary", help="Show the stored summary of a partition")
    add_partition_arguments(show_parser, required=True)
    show_parser.add_argument("--top", type=int, default=10, help="Titles to display (default: 10)")

    search_parser = subparsers.add_parser("search", help="Search wage records")
    search_parser.add_argument("--name", help="First, last or full name (case-insensitive)")
    search_parser.add_argument("--title", help="Title substring (case-insensitive)")
    add_partition_arguments(search_parser)
    search_parser.add_argument("--page", type=int, default=1, help="Result page (default: 1)")

    export_parser = subparsers.add_parser("export-artifacts", help="Write stored artifacts as JSON files")
    export_parser.add_argument("--output", required=True, help="Output directory")
    export_parser.add_argument("--location", help="Only export this location")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for admin CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    pool = None
    try:
        pool = create_pool(args)
        pool.open()
        COMMANDS[args.command](args, pool)

    except (WagePipelineError, PsycopgError) as e:
        logger.error(f"Command {args.command} failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    finally:
        if pool is not None:
            pool.close()


if __name__ == "__main__":
    main()
