"""Aggregators for gathering issues from archive endpoints."""

from .archive_fetcher import ArchiveFetcher
from .latest_issue_prober import DEFAULT_MAX_MISSES, HttpExistenceCheck, LatestIssueProber

__all__ = ["ArchiveFetcher", "DEFAULT_MAX_MISSES", "HttpExistenceCheck", "LatestIssueProber"]
