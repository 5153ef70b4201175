"""Tests for ArchiveExtractor."""

import os
import zipfile

import pytest
from conftest import CancelAfter, build_archive, pgn_for

from twic_aggregator.cancellation import BuildCanceled
from twic_aggregator.transformers import ArchiveExtractor


@pytest.fixture
def extractor():
    return ArchiveExtractor()


class TestExtractEntry:
    """Tests for ArchiveExtractor.extract_entry()."""

    def test_extracts_expected_entry(self, extractor, sample_archive_path, tmp_path):
        """The named entry is written to the destination."""
        destination = tmp_path / "twic920.pgn"

        assert extractor.extract_entry(sample_archive_path, "twic920.pgn", destination) is True
        assert destination.read_bytes() == pgn_for(920)

    def test_match_ignores_case(self, extractor, tmp_path):
        """Entry names are compared without regard to case."""
        archive = tmp_path / "twic921g.zip"
        archive.write_bytes(build_archive({"TWIC921.PGN": pgn_for(921)}))
        destination = tmp_path / "twic921.pgn"

        assert extractor.extract_entry(archive, "twic921.pgn", destination) is True
        assert destination.read_bytes() == pgn_for(921)

    def test_match_ignores_directories(self, extractor, tmp_path):
        """Entries inside folders match on their base name."""
        archive = tmp_path / "twic922g.zip"
        archive.write_bytes(build_archive({
            "readme.txt": b"not this one",
            "games/twic922.pgn": pgn_for(922),
        }))
        destination = tmp_path / "twic922.pgn"

        assert extractor.extract_entry(archive, "twic922.pgn", destination) is True
        assert destination.read_bytes() == pgn_for(922)

    def test_first_match_wins(self, extractor, tmp_path):
        """When several entries match, the first one is extracted."""
        archive = tmp_path / "twic923g.zip"
        archive.write_bytes(build_archive({
            "a/twic923.pgn": b"first",
            "b/twic923.pgn": b"second",
        }))
        destination = tmp_path / "twic923.pgn"

        assert extractor.extract_entry(archive, "twic923.pgn", destination) is True
        assert destination.read_bytes() == b"first"

    def test_missing_entry(self, extractor, tmp_path, caplog):
        """An archive without the expected entry fails the step."""
        archive = tmp_path / "twic924g.zip"
        archive.write_bytes(build_archive({"twic999.pgn": b"wrong issue"}))
        destination = tmp_path / "twic924.pgn"

        assert extractor.extract_entry(archive, "twic924.pgn", destination) is False
        assert not destination.exists()
        assert "does not contain expected file twic924.pgn" in caplog.text

    def test_corrupt_archive(self, extractor, tmp_path, caplog):
        """A file that is not a ZIP archive fails the step."""
        archive = tmp_path / "twic925g.zip"
        archive.write_bytes(b"<html>Not found</html>")
        destination = tmp_path / "twic925.pgn"

        assert extractor.extract_entry(archive, "twic925.pgn", destination) is False
        assert not destination.exists()
        assert "corrupt archive" in caplog.text

    def test_missing_archive(self, extractor, tmp_path):
        """A missing archive file fails the step."""
        destination = tmp_path / "twic926.pgn"

        assert extractor.extract_entry(tmp_path / "nope.zip", "twic926.pgn", destination) is False
        assert not destination.exists()

    def test_cancelled_mid_extraction(self, extractor, tmp_path):
        """Cancellation deletes the partial payload and propagates."""
        archive = tmp_path / "twic927g.zip"
        archive.write_bytes(build_archive({"twic927.pgn": os.urandom(512 * 1024)}))
        destination = tmp_path / "twic927.pgn"

        with pytest.raises(BuildCanceled):
            extractor.extract_entry(archive, "twic927.pgn", destination, CancelAfter(1))

        assert not destination.exists()


class TestFindEntry:
    """Tests for ArchiveExtractor.find_entry()."""

    def test_skips_directory_entries(self, extractor, tmp_path):
        """Directory entries never match."""
        path = tmp_path / "dirs.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("twic928.pgn/", b"")
            archive.writestr("twic928.pgn", b"payload")

        with zipfile.ZipFile(path) as archive:
            entry = extractor.find_entry(archive, "twic928.pgn")

        assert entry.filename == "twic928.pgn"

    def test_backslash_paths(self, extractor, tmp_path):
        """Windows-style separators are treated as directories."""
        path = tmp_path / "windows.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("games\\twic929.pgn", b"payload")

        with zipfile.ZipFile(path) as archive:
            entry = extractor.find_entry(archive, "twic929.pgn")

        assert entry is not None

    def test_no_match(self, extractor, sample_archive_path):
        """None is returned when nothing matches."""
        with zipfile.ZipFile(sample_archive_path) as archive:
            assert extractor.find_entry(archive, "twic930.pgn") is None
