"""Discovery of the latest published issue.

The archive series has no index of published issues, so the latest one is
found by asking the server whether successive issue numbers exist. A single
missing number is tolerated; two consecutive misses are taken as the end of
the series.
"""

import logging
from typing import Callable

from schemas.issue import DEFAULT_NAMING, IssueNaming
from twic_aggregator.cancellation import NEVER_CANCELLED, CancellationToken
from twic_aggregator.clients import (
    APIError,
    ConnectionError,
    MethodNotAllowedError,
    RedirectError,
    TwicClient,
    endpoint_chain,
)
from twic_aggregator.numbering import FIRST_KNOWN_ISSUE

logger = logging.getLogger(__name__)

DEFAULT_MAX_MISSES = 2

ExistenceCheck = Callable[[int], bool]


class HttpExistenceCheck:
    """Checks whether an issue archive is published.

    A HEAD request is tried first. If the server rejects HEAD with a 405 the
    check escalates to a GET whose body is never read. If the primary
    endpoint cannot be reached (network error, timeout or redirect), the same
    check is repeated against the alternate endpoint before concluding the
    issue is absent.
    """

    def __init__(
        self,
        primary: TwicClient,
        alternate: TwicClient | None = None,
        naming: IssueNaming = DEFAULT_NAMING,
    ):
        self.primary = primary
        self.alternate = alternate
        self.naming = naming

    def __call__(self, number: int) -> bool:
        archive_name = self.naming.archive_name(number)

        for client in endpoint_chain(self.primary, self.alternate):
            try:
                return self._exists_at(client, archive_name)
            except (ConnectionError, RedirectError) as e:
                logger.info(f"Could not check {archive_name} at {client.base_url}: {e.message}")
            except APIError as e:
                logger.debug(f"{archive_name} not available ({e.status_code})")
                return False

        return False

    def _exists_at(self, client: TwicClient, archive_name: str) -> bool:
        try:
            client.head(archive_name)
            return True
        except MethodNotAllowedError:
            logger.debug(f"{client.base_url} rejected HEAD, probing {archive_name} with GET")
            return client.probe(archive_name)


class LatestIssueProber:
    """Finds the highest published issue number.

    Example:
        prober = LatestIssueProber(HttpExistenceCheck(primary, alternate))
        latest = prober.find_latest(1500)
    """

    def __init__(self, exists: ExistenceCheck, max_misses: int = DEFAULT_MAX_MISSES):
        """Initialize the prober.

        Args:
            exists: Callable answering whether an issue number is published
            max_misses: Consecutive missing issues that end the search
        """
        if max_misses < 1:
            raise ValueError("max_misses must be at least 1")
        self.exists = exists
        self.max_misses = max_misses

    def find_latest(
        self,
        starting_issue: int,
        token: CancellationToken = NEVER_CANCELLED,
    ) -> int:
        """Probe forward from an issue known (or assumed) to exist.

        Args:
            starting_issue: Issue to start from; clamped to the first known issue
            token: Cancellation token checked before every probe

        Returns:
            The last issue found, never less than the clamped starting issue

        Raises:
            BuildCanceled: If the token is cancelled
        """
        current = max(FIRST_KNOWN_ISSUE, starting_issue)
        misses = 0
        candidate = current

        logger.info(f"Looking for issues newer than {current}")

        while misses < self.max_misses:
            token.raise_if_cancelled()
            candidate += 1

            if self.exists(candidate):
                logger.info(f"Issue {candidate} is available")
                current = candidate
                misses = 0
            else:
                misses += 1
                logger.debug(f"Issue {candidate} not found ({misses}/{self.max_misses})")

        logger.info(f"Latest available issue: {current}")
        return current
