"""Client for a TWIC archive endpoint."""

import logging
from pathlib import Path

from twic_aggregator.cancellation import NEVER_CANCELLED, CancellationToken
from twic_aggregator.files import BUFFER_SIZE, discard, flush_to_disk

from .client import Client

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_URL = "https://theweekinchess.com/zips/"
DEFAULT_ALTERNATE_URL = "http://www.theweekinchess.com/zips/"
DEFAULT_TIMEOUT = 120
USER_AGENT = "twic-aggregator/1.0 (+https://theweekinchess.com)"


class TwicClient(Client):
    """Client for one base URL serving TWIC archives.

    Archive names are resolved relative to the base URL, so the base URL
    should end with a slash (e.g. "https://theweekinchess.com/zips/").

    Example:
        config = {"base_url": "https://theweekinchess.com/zips/"}
        with TwicClient(config) as client:
            client.fetch("twic920g.zip", Path("/tmp/twic920g.zip"))
    """

    @property
    def timeout(self) -> float:
        return float(self._config.get("timeout", DEFAULT_TIMEOUT))

    @property
    def headers(self) -> dict[str, str]:
        headers = {"User-Agent": USER_AGENT}
        headers.update(self._config.get("headers", {}))
        return headers

    def url_for(self, archive_name: str) -> str:
        return str(self.client.base_url.join(archive_name))

    def fetch(
        self,
        archive_name: str,
        destination: Path,
        token: CancellationToken = NEVER_CANCELLED,
    ) -> int:
        """Download an archive to a local file.

        The body is streamed to disk and flushed before returning. On any
        failure, cancellation included, the partial destination is deleted.

        Args:
            archive_name: File name of the archive relative to the base URL
            destination: Local path to write
            token: Cancellation token checked between chunks

        Returns:
            Number of bytes written

        Raises:
            RedirectError: If the server answers with a redirect
            APIError: If the server returns any other non-2xx response
            ConnectionError: If the transfer fails or times out
            OSError: If the destination cannot be written
            BuildCanceled: If the token is cancelled during the transfer
        """
        written = 0
        try:
            with self._stream("GET", archive_name) as response:
                with destination.open("wb") as f:
                    for chunk in response.iter_bytes(BUFFER_SIZE):
                        token.raise_if_cancelled()
                        f.write(chunk)
                        written += len(chunk)
                    flush_to_disk(f)
        except BaseException:
            discard(destination)
            raise

        logger.debug(f"Wrote {written} bytes to {destination}")
        return written

    def probe(self, archive_name: str) -> bool:
        """Check for an archive with a GET request without reading the body.

        Used when the server refuses HEAD requests.

        Raises:
            APIError: If the server returns a non-2xx response
            ConnectionError: If the request fails or times out
        """
        with self._stream("GET", archive_name):
            return True


def endpoint_chain(primary: TwicClient, alternate: TwicClient | None = None) -> list[TwicClient]:
    """Return the endpoints to try in order.

    The alternate is only included when it points somewhere other than the
    primary.
    """
    endpoints = [primary]
    if alternate is not None and alternate.base_url.rstrip("/") != primary.base_url.rstrip("/"):
        endpoints.append(alternate)
    return endpoints
