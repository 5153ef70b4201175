"""Build pipeline for consolidating archive issues."""

from .build_log import MAX_LOG_ENTRIES, BuildLogHandler
from .build_pipeline import BuildInProgressError, BuildPipeline
from .steps import StepOutcome, classify

__all__ = [
    "BuildPipeline",
    "BuildInProgressError",
    "BuildLogHandler",
    "MAX_LOG_ENTRIES",
    "StepOutcome",
    "classify",
]
