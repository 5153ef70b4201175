"""Mapping between calendar dates and TWIC issue numbers.

TWIC publishes exactly one issue per seven-day period. Issue 920 is the first
one available as a downloadable archive and covers the week starting on
2012-09-04, so an issue number is the epoch issue plus the number of whole
weeks since the epoch date.
"""

from datetime import date, timedelta

from schemas.issue import DateRange, IssueRange

FIRST_KNOWN_ISSUE = 920
FIRST_KNOWN_DATE = date(2012, 9, 4)
DAYS_PER_ISSUE = 7


def issue_for_date(target_date: date) -> int:
    """Return the issue number covering a date.

    Dates before the first known date map to the first known issue.
    """
    if target_date < FIRST_KNOWN_DATE:
        target_date = FIRST_KNOWN_DATE

    weeks = (target_date - FIRST_KNOWN_DATE).days // DAYS_PER_ISSUE
    return FIRST_KNOWN_ISSUE + weeks


def date_for_issue(number: int) -> date:
    """Return the first day of the week covered by an issue."""
    weeks = max(0, number - FIRST_KNOWN_ISSUE)
    return FIRST_KNOWN_DATE + timedelta(days=weeks * DAYS_PER_ISSUE)


def issue_range_for_dates(date_range: DateRange) -> IssueRange:
    """Map a date range onto an ascending issue range.

    Both ends are clamped to the first known issue and swapped if the end
    maps to an earlier issue than the start.
    """
    first = max(FIRST_KNOWN_ISSUE, issue_for_date(date_range.start))
    last = max(FIRST_KNOWN_ISSUE, issue_for_date(date_range.end))

    if last < first:
        first, last = last, first

    return IssueRange(first, last)
