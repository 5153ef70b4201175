"""Pytest fixtures for TWIC Aggregator tests."""

import io
import zipfile

import httpx
import pytest

from twic_aggregator.cancellation import BuildCanceled, CancellationToken
from twic_aggregator.clients import TwicClient

PRIMARY_URL = "https://primary.test/zips/"
ALTERNATE_URL = "http://alternate.test/zips/"


def pgn_for(number: int) -> bytes:
    """Small but valid PGN payload identifying its issue."""
    return (
        f'[Event "TWIC {number}"]\n'
        f'[Site "Test"]\n'
        f'[Result "*"]\n'
        f"\n"
        f"1. e4 e5 *\n"
        f"\n"
    ).encode()


def build_archive(entries: dict[str, bytes]) -> bytes:
    """Build an in-memory ZIP archive from name -> content."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def log_messages(lines: list[str]) -> list[str]:
    """Build log lines without their HH:MM:SS prefix."""
    return [line.split("  ", 1)[1] for line in lines]


class ArchiveServer:
    """httpx MockTransport handler serving TWIC archives by file name.

    Attributes:
        archives: Archive file name -> archive bytes
        statuses: Archive file name -> status code forced for every request
        failures: Archive file name -> transport exception raised instead of responding
        allow_head: When False, HEAD requests are answered with 405
        requests: (method, file name) for every request received
    """

    def __init__(self):
        self.archives: dict[str, bytes] = {}
        self.statuses: dict[str, int] = {}
        self.failures: dict[str, type[httpx.TransportError]] = {}
        self.allow_head = True
        self.requests: list[tuple[str, str]] = []

    def add_issue(self, number: int, payload: bytes | None = None) -> None:
        self.archives[f"twic{number}g.zip"] = build_archive(
            {f"twic{number}.pgn": payload if payload is not None else pgn_for(number)}
        )

    def requested(self, method: str | None = None) -> list[str]:
        return [name for m, name in self.requests if method is None or m == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        self.requests.append((request.method, name))

        if name in self.failures:
            raise self.failures[name]("simulated failure", request=request)

        if request.method == "HEAD" and not self.allow_head:
            return httpx.Response(405)

        if name in self.statuses:
            status = self.statuses[name]
            headers = {}
            if 300 <= status < 400:
                headers["location"] = f"https://moved.test/zips/{name}"
            return httpx.Response(status, headers=headers)

        if name not in self.archives:
            return httpx.Response(404)

        if request.method == "HEAD":
            return httpx.Response(200, headers={"content-length": str(len(self.archives[name]))})

        return httpx.Response(200, content=self.archives[name])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class CancelAfter(CancellationToken):
    """Token that reports cancellation after a number of checks."""

    def __init__(self, checks: int):
        super().__init__()
        self.remaining = checks

    def is_cancelled(self) -> bool:
        return self.remaining <= 0

    def raise_if_cancelled(self) -> None:
        if self.remaining <= 0:
            raise BuildCanceled(self)
        self.remaining -= 1


@pytest.fixture
def primary_server():
    """Archive server behind the primary endpoint."""
    return ArchiveServer()


@pytest.fixture
def alternate_server():
    """Archive server behind the alternate endpoint."""
    return ArchiveServer()


@pytest.fixture
def primary_client(primary_server):
    """TwicClient talking to the primary archive server."""
    client = TwicClient({"base_url": PRIMARY_URL}, transport=primary_server.transport)
    yield client
    client.close()


@pytest.fixture
def alternate_client(alternate_server):
    """TwicClient talking to the alternate archive server."""
    client = TwicClient({"base_url": ALTERNATE_URL}, transport=alternate_server.transport)
    yield client
    client.close()


@pytest.fixture
def sample_archive_path(tmp_path):
    """A ZIP archive for issue 920 written to disk."""
    path = tmp_path / "twic920g.zip"
    path.write_bytes(build_archive({"twic920.pgn": pgn_for(920)}))
    return path
