"""Issue domain objects."""

from dataclasses import dataclass
from datetime import date
from typing import Iterator


@dataclass(frozen=True)
class IssueNaming:
    """File naming convention for an archive series.

    Attributes:
        prefix: Leading part shared by archive and payload names
        archive_suffix: Suffix of the compressed archive (e.g. "g.zip")
        payload_suffix: Suffix of the file inside the archive (e.g. ".pgn")
    """

    prefix: str = "twic"
    archive_suffix: str = "g.zip"
    payload_suffix: str = ".pgn"

    def archive_name(self, number: int) -> str:
        return f"{self.prefix}{number}{self.archive_suffix}"

    def payload_name(self, number: int) -> str:
        return f"{self.prefix}{number}{self.payload_suffix}"


DEFAULT_NAMING = IssueNaming()


@dataclass(frozen=True)
class Issue:
    """A single numbered issue of the archive series.

    Attributes:
        number: Issue number
        archive_name: File name of the compressed archive on the server
        payload_name: File name of the payload expected inside the archive
    """

    number: int
    archive_name: str
    payload_name: str

    @classmethod
    def from_number(cls, number: int, naming: IssueNaming = DEFAULT_NAMING) -> "Issue":
        return cls(
            number=number,
            archive_name=naming.archive_name(number),
            payload_name=naming.payload_name(number),
        )


@dataclass(frozen=True)
class DateRange:
    """Requested publication date range (both ends inclusive)."""

    start: date
    end: date

    def normalized(self, earliest: date, today: date) -> "DateRange":
        """Clamp both ends to [earliest, today] and swap if inverted."""
        start = min(max(self.start, earliest), today)
        end = min(max(self.end, earliest), today)
        if end < start:
            start, end = end, start
        return DateRange(start, end)


@dataclass(frozen=True)
class IssueRange:
    """Inclusive range of issue numbers, always ascending."""

    first: int
    last: int

    def __post_init__(self):
        if self.last < self.first:
            raise ValueError(f"Inverted issue range: {self.first} > {self.last}")

    def __len__(self) -> int:
        return self.last - self.first + 1

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.first, self.last + 1))

    def extended_to(self, last: int) -> "IssueRange":
        return IssueRange(self.first, max(self.last, last))
