"""
Command-line interface for wage file ingestion.

Usage:
    wage-ingest file <path> [--location <loc>] [--year <year>] [options]
    wage-ingest dir <data_dir> [--workers N] [options]
"""

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from psycopg import Error as PsycopgError

from wage_pipeline.aggregation import AggregationEngine
from wage_pipeline.core.config import load_settings
from wage_pipeline.core.errors import WagePipelineError
from wage_pipeline.core.models import IngestResult, UploadStatus
from wage_pipeline.ingestion import IngestionEngine
from wage_pipeline.normalizer import discover_wage_files
from wage_pipeline.observability.logger import get_logger
from wage_pipeline.observability.metrics import start_metrics_server
from wage_pipeline.warehouse import (
    InMemoryArtifactStore,
    InMemoryProgressLedger,
    InMemoryWageStore,
    PostgresArtifactStore,
    PostgresProgressLedger,
    PostgresWageStore,
)

from .common import add_db_arguments, create_pool

logger = get_logger(__name__)


class Pipeline:
    """Ingestion and aggregation engines wired to one set of stores."""

    def __init__(self, wage_store, progress_ledger, artifact_store, settings, chunk_size=None):
        self.ingestion = IngestionEngine(wage_store, progress_ledger, chunk_size=chunk_size, settings=settings)
        self.aggregation = AggregationEngine(wage_store, artifact_store, settings=settings)

    def run_file(self, path: Path, location=None, year=None, summarize=False) -> IngestResult:
        result = self.ingestion.ingest_file(path, location=location, year=year)
        if summarize and result.ok:
            self.aggregation.summarize(result.partition)
        return result


def print_result(result: IngestResult) -> None:
    status = result.status.value.upper()
    if result.superseded:
        status = "SUPERSEDED"
    print(
        f"  {str(result.partition):<25} {status:<12} "
        f"{result.succeeded:>8}/{result.total_records:<8} "
        f"chunks={result.chunks_written:<4} {result.duration_seconds:>7.2f}s"
    )
    if result.error_message:
        print(f"    Error: {result.error_message}")


def failed_result(partition, error_message: str) -> IngestResult:
    """Result for a file that failed before its upload job started."""
    return IngestResult(partition=partition, job_id="", status=UploadStatus.FAILED, error_message=error_message)


def run(args: argparse.Namespace, pipeline: Pipeline) -> list[IngestResult]:
    """
    Execute the requested ingestion command.

    Returns:
        One IngestResult per ingested file
    """
    if args.command == "file":
        return [
            pipeline.run_file(
                Path(args.path),
                location=args.location,
                year=args.year,
                summarize=args.summarize,
            )
        ]

    wage_files = discover_wage_files(args.data_dir)
    if args.location:
        wage_files = [f for f in wage_files if f.partition.location == args.location]
    logger.info(f"Found {len(wage_files)} wage files in {args.data_dir}")

    # Partitions are disjoint, so files can be ingested in parallel
    results = []
    with ThreadPoolExecutor(max_workers=args.workers) as executor:
        futures = {
            executor.submit(pipeline.run_file, wage_file.path, summarize=args.summarize): wage_file
            for wage_file in wage_files
        }
        for future in as_completed(futures):
            wage_file = futures[future]
            try:
                results.append(future.result())
            except (WagePipelineError, PsycopgError, FileNotFoundError) as e:
                # Report the file and keep going
                logger.error(f"Failed to ingest {wage_file.path}: {e}", extra={"partition": str(wage_file.partition)})
                results.append(failed_result(wage_file.partition, str(e)))

    return sorted(results, key=lambda r: (r.partition.location, r.partition.year))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wage-ingest",
        description="Ingest wage files into the wage warehouse",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ingest one file, partition taken from the payload or the path
  wage-ingest file data/ucla/wages_2023.json

  # Ingest every file under data/ with 4 workers and refresh summaries
  wage-ingest dir data --workers 4 --summarize

  # Parse and aggregate in memory without touching the database
  wage-ingest dir data --dry-run --summarize
        """
    )

    # Options accepted by every subcommand
    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument("--config", help="Pipeline YAML config (default: $WAGE_CONFIG or config/pipeline.yaml)")
    shared.add_argument("--chunk-size", type=int, help="Records per upsert chunk")
    shared.add_argument("--summarize", action="store_true", help="Regenerate artifacts after each completed upload")
    shared.add_argument("--dry-run", action="store_true", help="Use in-memory stores; nothing is written to the database")
    shared.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port")
    add_db_arguments(shared)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    file_parser = subparsers.add_parser("file", parents=[shared], help="Ingest one wage file")
    file_parser.add_argument("path", help="Path to a wage JSON file")
    file_parser.add_argument("--location", help="Location when neither payload nor path has one")
    file_parser.add_argument("--year", type=int, help="Year when neither payload nor path has one")

    dir_parser = subparsers.add_parser("dir", parents=[shared], help="Ingest every <location>/wages_<year>.json under a directory")
    dir_parser.add_argument("data_dir", help="Data directory")
    dir_parser.add_argument("--location", help="Only ingest this location")
    dir_parser.add_argument("--workers", type=int, default=1, help="Partitions ingested in parallel (default: 1)")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    pool = None
    try:
        settings = load_settings(args.config)

        if args.dry_run:
            logger.info("DRY RUN MODE: records are kept in memory only")
            pipeline = Pipeline(
                InMemoryWageStore(),
                InMemoryProgressLedger(),
                InMemoryArtifactStore(),
                settings,
                chunk_size=args.chunk_size,
            )
        else:
            workers = getattr(args, "workers", 1)
            pool = create_pool(args, max_size=max(10, 2 * workers + 2))
            pool.open()
            pipeline = Pipeline(
                PostgresWageStore(pool),
                PostgresProgressLedger(pool),
                PostgresArtifactStore(pool),
                settings,
                chunk_size=args.chunk_size,
            )

        results = run(args, pipeline)

        print(f"\n{'=' * 80}")
        print("INGESTION COMPLETE" + (" (DRY RUN)" if args.dry_run else ""))
        print(f"{'=' * 80}")
        for result in results:
            print_result(result)
        print(f"{'=' * 80}\n")

        if any(not r.ok for r in results):
            sys.exit(1)

    except (WagePipelineError, PsycopgError, FileNotFoundError) as e:
        logger.error(f"Ingestion failed: {e}", exc_info=True)
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
