"""Command-line interface for twic-aggregator."""

import argparse
import logging
import signal
import sys
from datetime import date
from pathlib import Path

from schemas.build import BuildPolicy, ProgressCounters
from schemas.issue import DateRange
from twic_aggregator.aggregators import (
    DEFAULT_MAX_MISSES,
    ArchiveFetcher,
    HttpExistenceCheck,
    LatestIssueProber,
)
from twic_aggregator.cancellation import CancellationSource
from twic_aggregator.clients import TwicClient
from twic_aggregator.clients.twic_client import (
    DEFAULT_ALTERNATE_URL,
    DEFAULT_PRIMARY_URL,
    DEFAULT_TIMEOUT,
)
from twic_aggregator.files import purge_directory
from twic_aggregator.numbering import FIRST_KNOWN_DATE, date_for_issue, issue_for_date
from twic_aggregator.pipeline import BuildPipeline
from twic_aggregator.state import StateFile

DEFAULT_WORK_DIR = Path("./workspace/scratch")
DEFAULT_STATE_FILE = Path("./workspace/state.json")

EXIT_COMPLETED = 0
EXIT_FAILED = 1
EXIT_CANCELED = 130


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_clients(args: argparse.Namespace) -> tuple[TwicClient, TwicClient | None]:
    """Create the primary and optional alternate endpoint clients."""
    primary = TwicClient({"base_url": args.primary_url, "timeout": args.timeout})
    alternate = None
    if not args.no_alternate and args.alternate_url:
        alternate = TwicClient({"base_url": args.alternate_url, "timeout": args.timeout})
    return primary, alternate


def build(args: argparse.Namespace) -> int:
    """Execute the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 completed, 1 failed, 130 canceled)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    output_path = args.output
    if output_path.is_dir():
        logger.error(f"Output path is a directory: {output_path}")
        return EXIT_FAILED

    today = date.today()
    date_range = DateRange(args.start or FIRST_KNOWN_DATE, args.end or today)
    policy = BuildPolicy(append_mode=args.append, stop_on_first_skip=args.stop_on_skip)

    def report_progress(progress: ProgressCounters) -> None:
        logger.debug(
            f"Progress: {progress.added} added, {progress.skipped} skipped, "
            f"{progress.total} total"
        )

    primary, alternate = build_clients(args)

    with ArchiveFetcher(primary, alternate) as fetcher:
        prober = None
        if not args.no_probe:
            prober = LatestIssueProber(
                HttpExistenceCheck(primary, alternate),
                max_misses=args.max_misses,
            )

        pipeline = BuildPipeline(
            fetcher,
            work_dir=args.work_dir,
            prober=prober,
            hint_store=StateFile(args.state_file),
            on_progress=report_progress,
        )

        cancel_source = CancellationSource()

        # Runs on the thread executing the build; must not take any lock run() holds
        def handle_shutdown(signum, frame) -> None:
            logger.info("Shutdown signal received, canceling after the current chunk")
            cancel_source.cancel()

        previous_int = signal.signal(signal.SIGINT, handle_shutdown)
        previous_term = signal.signal(signal.SIGTERM, handle_shutdown)
        try:
            result = pipeline.run(date_range, output_path, policy, cancel_source)
        finally:
            signal.signal(signal.SIGINT, previous_int)
            signal.signal(signal.SIGTERM, previous_term)

    progress = result.progress
    logger.info(f"Build {result.outcome.status}: {output_path}")
    if result.issue_range is not None:
        logger.info(f"  Issues: {result.issue_range.first} to {result.issue_range.last}")
    logger.info(f"  Added: {progress.added}")
    logger.info(f"  Skipped: {progress.skipped}")
    logger.info(f"  Total: {progress.total}")

    if result.outcome.status == "canceled":
        return EXIT_CANCELED
    if result.outcome.status == "failed":
        logger.error(f"  Reason: {result.outcome.reason}")
        return EXIT_FAILED
    return EXIT_COMPLETED


def latest(args: argparse.Namespace) -> int:
    """Execute the latest command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    store = StateFile(args.state_file)
    hint = store.load_hint()
    starting_issue = args.start_issue or max(issue_for_date(date.today()), hint or 0)

    primary, alternate = build_clients(args)

    try:
        with primary:
            prober = LatestIssueProber(
                HttpExistenceCheck(primary, alternate),
                max_misses=args.max_misses,
            )
            latest_issue = prober.find_latest(starting_issue)
    except Exception as e:
        logger.error(f"Failed to probe for the latest issue: {e}")
        return 1
    finally:
        if alternate is not None:
            alternate.close()

    if hint is None or latest_issue > hint:
        store.save_hint(latest_issue)

    print(latest_issue)
    logger.info(f"Latest issue {latest_issue} (week of {date_for_issue(latest_issue).isoformat()})")
    return 0


def issue_number(args: argparse.Namespace) -> int:
    """Execute the issue-number command."""
    setup_logging(args.verbose)
    print(issue_for_date(args.date))
    return 0


def purge(args: argparse.Namespace) -> int:
    """Execute the purge command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    deleted = purge_directory(args.work_dir)
    logger.info(f"Deleted {deleted} scratch file(s) from {args.work_dir}")
    return 0


def add_endpoint_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--primary-url",
        type=str,
        default=DEFAULT_PRIMARY_URL,
        help=f"Base URL tried first (default: {DEFAULT_PRIMARY_URL})",
    )
    parser.add_argument(
        "--alternate-url",
        type=str,
        default=DEFAULT_ALTERNATE_URL,
        help=f"Fallback base URL (default: {DEFAULT_ALTERNATE_URL})",
    )
    parser.add_argument(
        "--no-alternate",
        action="store_true",
        help="Do not fall back to the alternate URL",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--max-misses",
        type=int,
        default=DEFAULT_MAX_MISSES,
        help=(
            "Consecutive missing issues that end latest-issue discovery "
            f"(default: {DEFAULT_MAX_MISSES})"
        ),
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        default=DEFAULT_STATE_FILE,
        help=f"File holding the cached latest issue (default: {DEFAULT_STATE_FILE})",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="twic-aggregator",
        description="Build a consolidated PGN database from The Week in Chess archives",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    build_parser = subparsers.add_parser(
        "build",
        help="Download TWIC issues for a date range and merge them into one file",
        description=(
            "Download each TWIC issue in the date range, extract its PGN file and "
            "append it to the output in issue order."
        ),
    )
    build_parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Consolidated PGN file to write",
    )
    build_parser.add_argument(
        "--start",
        type=date.fromisoformat,
        default=None,
        help=f"Start date (ISO format: YYYY-MM-DD, default: {FIRST_KNOWN_DATE.isoformat()})",
    )
    build_parser.add_argument(
        "--end",
        type=date.fromisoformat,
        default=None,
        help="End date (ISO format: YYYY-MM-DD, default: today)",
    )
    build_parser.add_argument(
        "--append",
        action="store_true",
        help="Append to the output instead of replacing it",
    )
    build_parser.add_argument(
        "--stop-on-skip",
        action="store_true",
        help="Stop at the first issue that cannot be downloaded or merged",
    )
    build_parser.add_argument(
        "--no-probe",
        action="store_true",
        help="Do not look for issues newer than today's date suggests",
    )
    build_parser.add_argument(
        "--work-dir",
        type=Path,
        default=DEFAULT_WORK_DIR,
        help=f"Directory for scratch files (default: {DEFAULT_WORK_DIR})",
    )
    add_endpoint_arguments(build_parser)
    build_parser.set_defaults(func=build)

    latest_parser = subparsers.add_parser(
        "latest",
        help="Find the latest published TWIC issue",
        description="Probe the archive endpoints for the highest published issue number.",
    )
    latest_parser.add_argument(
        "--from",
        dest="start_issue",
        type=int,
        default=None,
        help="Issue to probe forward from (default: cached issue or today's issue)",
    )
    add_endpoint_arguments(latest_parser)
    latest_parser.set_defaults(func=latest)

    issue_parser = subparsers.add_parser(
        "issue-number",
        help="Print the TWIC issue number covering a date",
    )
    issue_parser.add_argument(
        "--date",
        type=date.fromisoformat,
        required=True,
        help="Date (ISO format: YYYY-MM-DD)",
    )
    issue_parser.set_defaults(func=issue_number)

    purge_parser = subparsers.add_parser(
        "purge",
        help="Delete leftover scratch files",
    )
    purge_parser.add_argument(
        "--work-dir",
        type=Path,
        default=DEFAULT_WORK_DIR,
        help=f"Directory for scratch files (default: {DEFAULT_WORK_DIR})",
    )
    purge_parser.set_defaults(func=purge)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
