"""Build pipeline: download, extract and merge a range of issues.

A build resolves a date range to an issue range, optionally extends it to the
latest published issue, then processes issues strictly in ascending order:

    fetch archive -> extract payload -> append payload to output

Issues are merged by plain byte concatenation, so the order of processing is
the order of the consolidated output and issues are never processed
concurrently.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import BinaryIO, Callable

from schemas.build import BuildOutcome, BuildPolicy, BuildResult, ProgressCounters
from schemas.issue import DEFAULT_NAMING, DateRange, Issue, IssueNaming, IssueRange
from twic_aggregator.aggregators import ArchiveFetcher, LatestIssueProber
from twic_aggregator.cancellation import BuildCanceled, CancellationSource, CancellationToken
from twic_aggregator.files import flush_to_disk, purge_directory, scratch_files
from twic_aggregator.numbering import FIRST_KNOWN_DATE, issue_range_for_dates
from twic_aggregator.pipeline.build_log import BuildLogHandler
from twic_aggregator.pipeline.steps import StepOutcome, classify
from twic_aggregator.state import HintStore
from twic_aggregator.transformers import ArchiveExtractor, PayloadMerger

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressCounters], None]
LogCallback = Callable[[str], None]


class BuildInProgressError(RuntimeError):
    """Raised when a build is started while another one is running."""


@dataclass
class _RunState:
    """Mutable state of a single build."""

    token: CancellationToken
    policy: BuildPolicy
    progress: ProgressCounters = field(default_factory=ProgressCounters)
    issue_range: IssueRange | None = None
    hint: int | None = None
    saved_hint: int | None = None
    wrote_any: bool = False


class BuildPipeline:
    """Builds a consolidated file from a range of archive issues.

    Each build has one cancellation source. cancel() may be called from
    another thread while run() is active; the request is observed at the
    next issue boundary or I/O chunk. cancel() takes the pipeline lock, so
    signal handlers must instead cancel a source passed into run().

    Example:
        with ArchiveFetcher(primary, alternate) as fetcher:
            pipeline = BuildPipeline(fetcher, Path("./workspace/scratch"))
            result = pipeline.run(
                DateRange(date(2024, 1, 1), date.today()),
                Path("./twic.pgn"),
                BuildPolicy(append_mode=False, stop_on_first_skip=False),
            )
    """

    def __init__(
        self,
        fetcher: ArchiveFetcher,
        work_dir: Path,
        extractor: ArchiveExtractor | None = None,
        merger: PayloadMerger | None = None,
        prober: LatestIssueProber | None = None,
        hint_store: HintStore | None = None,
        naming: IssueNaming = DEFAULT_NAMING,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the pipeline.

        Args:
            fetcher: Downloads issue archives
            work_dir: Directory for scratch archives and payloads
            extractor: Extracts payloads from archives
            merger: Appends payloads to the output
            prober: Finds the latest published issue for open-ended ranges;
                    no probing when None
            hint_store: Where the latest-issue hint is loaded and saved
            naming: Archive and payload naming convention
            on_progress: Receives a copy of the counters after every change
            on_log: Receives every log line emitted during a build
            today: Returns the current date
        """
        self.fetcher = fetcher
        self.work_dir = work_dir
        self.extractor = extractor or ArchiveExtractor()
        self.merger = merger or PayloadMerger()
        self.prober = prober
        self.hint_store = hint_store
        self.naming = naming
        self.on_progress = on_progress
        self.on_log = on_log
        self.today = today

        self._lock = threading.Lock()
        self._cancel_source: CancellationSource | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._cancel_source is not None

    def cancel(self) -> bool:
        """Request cancellation of the running build.

        Returns:
            True if a build was running, False otherwise
        """
        with self._lock:
            if self._cancel_source is None:
                return False
            logger.info("Cancelling build ...")
            self._cancel_source.cancel()
            return True

    def run(
        self,
        date_range: DateRange,
        output_path: Path,
        policy: BuildPolicy | None = None,
        cancel_source: CancellationSource | None = None,
    ) -> BuildResult:
        """Run one build to completion, cancellation or failure.

        Args:
            date_range: Requested publication dates
            output_path: Consolidated output file
            policy: Append and stop-on-skip flags
            cancel_source: Source the caller cancels the build through,
                           e.g. from a signal handler; a new one is created
                           when None. A source cancelled before the build
                           starts cancels it before any issue is processed.

        Returns:
            BuildResult with the outcome, final counters and captured log

        Raises:
            BuildInProgressError: If a build is already running
        """
        with self._lock:
            if self._cancel_source is not None:
                raise BuildInProgressError("A build is already running")
            source = cancel_source if cancel_source is not None else CancellationSource()
            self._cancel_source = source

        state = _RunState(token=source.token, policy=policy or BuildPolicy())
        handler = BuildLogHandler(self.on_log).attach()

        try:
            outcome = self._build(state, date_range, output_path)
        except BuildCanceled as e:
            if e.token is state.token:
                logger.info("Build canceled.")
                outcome = BuildOutcome.canceled()
            else:
                logger.error(f"Build failed: cancellation from outside this build: {e.message}")
                outcome = BuildOutcome.failed(e.message)
        except Exception as e:
            logger.error(f"Build failed: {e}")
            outcome = BuildOutcome.failed(str(e))
        finally:
            purge_directory(self.work_dir)
            with self._lock:
                self._cancel_source = None
            handler.detach()

        return BuildResult(
            outcome=outcome,
            progress=state.progress.snapshot(),
            issue_range=state.issue_range,
            cached_latest_issue=state.hint,
            log=handler.lines,
        )

    def _build(self, state: _RunState, date_range: DateRange, output_path: Path) -> BuildOutcome:
        logger.info("Starting database build...")

        state.hint = state.saved_hint = self._load_hint()
        state.issue_range = self._resolve_range(date_range, state)

        state.progress.total = len(state.issue_range)
        self._emit(state)

        self.work_dir.mkdir(parents=True, exist_ok=True)
        if output_path.resolve().parent == self.work_dir.resolve():
            reason = f"Output {output_path} must not be inside the work directory {self.work_dir}"
            logger.error(reason)
            return BuildOutcome.failed(reason)

        try:
            output = self._open_output(output_path, state.policy.append_mode)
        except OSError as e:
            reason = f"Can't open database for writing: {e}"
            logger.error(reason)
            return BuildOutcome.failed(reason)

        try:
            for number in state.issue_range:
                state.token.raise_if_cancelled()

                outcome = self._process_issue(Issue.from_number(number, self.naming), output, state)

                if outcome.skipped:
                    state.progress.skipped += 1
                    self._emit(state)
                    if outcome.stops_build:
                        logger.warning("Stopping because an issue was skipped.")
                        break
                    continue

                state.wrote_any = True
                state.progress.added += 1
                self._emit(state)
                if state.hint is None or number > state.hint:
                    state.hint = number
        finally:
            self._close_output(output)
            self._persist_hint(state)

        if state.wrote_any:
            logger.info("Database build complete.")
        else:
            logger.info("No issues downloaded for the selected range.")

        return BuildOutcome.completed(state.wrote_any)

    def _resolve_range(self, date_range: DateRange, state: _RunState) -> IssueRange:
        """Map the requested dates to issues, extending open-ended ranges."""
        today = self.today()
        normalized = date_range.normalized(FIRST_KNOWN_DATE, today)
        issue_range = issue_range_for_dates(normalized)

        logger.info(
            f"Date Range: {normalized.start.isoformat()} to {normalized.end.isoformat()} "
            f"(issues {issue_range.first} to {issue_range.last})"
        )

        if normalized.end == today and self.prober is not None:
            seed = max(issue_range.last, state.hint or 0)
            latest = self.prober.find_latest(seed, state.token)
            if latest > issue_range.last:
                logger.info(f"Extending range to latest available issue {latest}")
                issue_range = issue_range.extended_to(latest)
                state.hint = max(latest, state.hint or 0)
                self._persist_hint(state)

        return issue_range

    def _process_issue(self, issue: Issue, output: BinaryIO, state: _RunState) -> StepOutcome:
        """Fetch, extract and merge one issue.

        Scratch files for the issue are deleted however processing ends.
        """
        archive_path = self.work_dir / issue.archive_name
        payload_path = self.work_dir / issue.payload_name

        with scratch_files(archive_path, payload_path):
            if not self.fetcher.fetch(issue, archive_path, state.token):
                return classify(False, state.policy)

            if not self.extractor.extract_entry(
                archive_path, issue.payload_name, payload_path, state.token
            ):
                return classify(False, state.policy)

            merged = self.merger.append_to(payload_path, output, state.token)
            return classify(merged, state.policy)

    def _open_output(self, output_path: Path, append_mode: bool) -> BinaryIO:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output = output_path.open("ab" if append_mode else "wb")
        logger.info(f"{'Appending to' if append_mode else 'Writing'} {output_path}")
        return output

    def _close_output(self, output: BinaryIO) -> None:
        try:
            flush_to_disk(output)
        except OSError as e:
            logger.error(f"Failed to flush output: {e}")
        finally:
            output.close()

    def _emit(self, state: _RunState) -> None:
        if self.on_progress is not None:
            self.on_progress(state.progress.snapshot())

    def _load_hint(self) -> int | None:
        if self.hint_store is None:
            return None
        return self.hint_store.load_hint()

    def _persist_hint(self, state: _RunState) -> None:
        """Save the hint if it changed since it was last saved."""
        if self.hint_store is None or state.hint is None or state.hint == state.saved_hint:
            return
        try:
            self.hint_store.save_hint(state.hint)
            state.saved_hint = state.hint
        except OSError as e:
            logger.warning(f"Could not save latest issue hint {state.hint}: {e}")
