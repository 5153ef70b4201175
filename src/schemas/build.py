"""Build request and result objects."""

from dataclasses import dataclass, field, replace
from typing import Literal

from .issue import IssueRange


@dataclass(frozen=True)
class BuildPolicy:
    """Policy flags fixed for the duration of one build.

    Attributes:
        append_mode: Append to the output instead of truncating it
        stop_on_first_skip: Halt the build at the first issue that is skipped
    """

    append_mode: bool = False
    stop_on_first_skip: bool = False


@dataclass
class ProgressCounters:
    """Live progress of a build.

    Attributes:
        total: Number of issues in the resolved range
        added: Issues merged into the output
        skipped: Issues that could not be fully processed
    """

    total: int = 0
    added: int = 0
    skipped: int = 0

    @property
    def attempted(self) -> int:
        return self.added + self.skipped

    def snapshot(self) -> "ProgressCounters":
        return replace(self)


@dataclass(frozen=True)
class BuildOutcome:
    """Terminal state of a build."""

    status: Literal["completed", "canceled", "failed"]
    wrote_any: bool = False
    reason: str | None = None

    @classmethod
    def completed(cls, wrote_any: bool) -> "BuildOutcome":
        return cls(status="completed", wrote_any=wrote_any)

    @classmethod
    def canceled(cls) -> "BuildOutcome":
        return cls(status="canceled")

    @classmethod
    def failed(cls, reason: str) -> "BuildOutcome":
        return cls(status="failed", reason=reason)


@dataclass
class BuildResult:
    """Everything a caller needs to report on a finished build.

    Attributes:
        outcome: Terminal outcome
        progress: Final progress counters
        issue_range: Resolved issue range, None if the build failed before
                     resolving it
        cached_latest_issue: Latest-issue hint after the build
        log: Most recent log lines emitted during the build
    """

    outcome: BuildOutcome
    progress: ProgressCounters
    issue_range: IssueRange | None = None
    cached_latest_issue: int | None = None
    log: list[str] = field(default_factory=list)
