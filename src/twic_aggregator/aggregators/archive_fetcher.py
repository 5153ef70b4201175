"""Archive fetcher for downloading TWIC issues with endpoint fallback."""

import logging
from pathlib import Path

from schemas.issue import Issue
from twic_aggregator.cancellation import NEVER_CANCELLED, CancellationToken
from twic_aggregator.clients import (
    APIError,
    ConnectionError,
    RedirectError,
    RequestTimeoutError,
    TwicClient,
    endpoint_chain,
)

logger = logging.getLogger(__name__)


class ArchiveFetcher:
    """Downloads one issue's archive, falling back to an alternate endpoint.

    The primary endpoint is tried first. If it fails for any reason (a
    redirect, an error status, a network failure or timeout, or a disk
    error) and an alternate endpoint is configured, the alternate is tried
    once. Neither endpoint is retried. Cancellation always propagates.

    Example:
        primary = TwicClient({"base_url": "https://theweekinchess.com/zips/"})
        alternate = TwicClient({"base_url": "http://www.theweekinchess.com/zips/"})
        fetcher = ArchiveFetcher(primary, alternate)
        ok = fetcher.fetch(Issue.from_number(920), Path("./scratch/twic920g.zip"))
    """

    def __init__(self, primary: TwicClient, alternate: TwicClient | None = None):
        """Initialize the fetcher.

        Args:
            primary: Endpoint tried first
            alternate: Optional fallback endpoint
        """
        self.primary = primary
        self.alternate = alternate

    @property
    def endpoints(self) -> list[TwicClient]:
        return endpoint_chain(self.primary, self.alternate)

    def close(self) -> None:
        """Close the HTTP clients of every endpoint."""
        self.primary.close()
        if self.alternate is not None:
            self.alternate.close()

    def __enter__(self) -> "ArchiveFetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def fetch(
        self,
        issue: Issue,
        destination: Path,
        token: CancellationToken = NEVER_CANCELLED,
    ) -> bool:
        """Download an issue's archive to a local file.

        Args:
            issue: The issue to download
            destination: Local path for the archive
            token: Cancellation token

        Returns:
            True if the archive was written to destination, False otherwise

        Raises:
            BuildCanceled: If the token is cancelled
        """
        endpoints = self.endpoints

        for index, client in enumerate(endpoints):
            has_fallback = index + 1 < len(endpoints)
            url = client.url_for(issue.archive_name)
            logger.info(f"Downloading {url}")

            try:
                client.fetch(issue.archive_name, destination, token)
                return True

            except RedirectError as e:
                target = f" to {e.location}" if e.location else ""
                if has_fallback:
                    logger.info(
                        f"{url} redirected ({e.status_code}){target}, "
                        f"trying {endpoints[index + 1].base_url}"
                    )
                    continue
                logger.warning(f"Download failed ({e.status_code} redirect{target}) for {url}")
            except APIError as e:
                logger.warning(f"Download failed ({e.status_code}) for {url}")
            except RequestTimeoutError:
                logger.warning(f"Download timed out for {url}")
            except ConnectionError as e:
                logger.warning(f"Failed to download {url}: {e.message}")
            except OSError as e:
                logger.warning(f"Failed to write {destination.name} from {url}: {e}")

            if has_fallback:
                logger.info(f"Retrying {issue.archive_name} from {endpoints[index + 1].base_url}")

        return False
