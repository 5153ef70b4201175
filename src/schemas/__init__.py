"""Schema definitions for TWIC Aggregator."""

from .build import BuildOutcome, BuildPolicy, BuildResult, ProgressCounters
from .issue import DEFAULT_NAMING, DateRange, Issue, IssueNaming, IssueRange
from .state import BuildState

__all__ = [
    "BuildOutcome",
    "BuildPolicy",
    "BuildResult",
    "BuildState",
    "DEFAULT_NAMING",
    "DateRange",
    "Issue",
    "IssueNaming",
    "IssueRange",
    "ProgressCounters",
]
