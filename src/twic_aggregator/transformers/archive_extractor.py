"""Extraction of the payload file from a downloaded issue archive."""

import logging
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from twic_aggregator.cancellation import NEVER_CANCELLED, BuildCanceled, CancellationToken
from twic_aggregator.files import copy_stream, discard, flush_to_disk

logger = logging.getLogger(__name__)

# zipfile raises these for truncated, corrupt or unsupported archives
CORRUPT_ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError)


class ArchiveExtractor:
    """Extracts exactly one expected entry from a ZIP archive.

    Entries are matched on their base name, ignoring case and any directory
    prefix inside the archive. If several entries match, the first one wins.

    Example:
        extractor = ArchiveExtractor()
        ok = extractor.extract_entry(
            Path("./scratch/twic920g.zip"), "twic920.pgn", Path("./scratch/twic920.pgn")
        )
    """

    def extract_entry(
        self,
        archive_path: Path,
        expected_name: str,
        destination: Path,
        token: CancellationToken = NEVER_CANCELLED,
    ) -> bool:
        """Extract the entry named expected_name to destination.

        Args:
            archive_path: Path to the ZIP archive
            expected_name: Base name of the entry to extract
            destination: Local path to write the decompressed entry to
            token: Cancellation token checked between chunks

        Returns:
            True if the entry was extracted and flushed, False otherwise

        Raises:
            BuildCanceled: If the token is cancelled during extraction
        """
        logger.info(f"Unzipping {archive_path.name}")

        try:
            with zipfile.ZipFile(archive_path) as archive:
                entry = self.find_entry(archive, expected_name)
                if entry is None:
                    logger.warning(
                        f"Archive {archive_path.name} does not contain expected file {expected_name}."
                    )
                    return False

                with archive.open(entry) as source, destination.open("wb") as target:
                    copy_stream(source, target, token)
                    flush_to_disk(target)

            return True

        except BuildCanceled:
            discard(destination)
            raise
        except CORRUPT_ARCHIVE_ERRORS as e:
            logger.warning(f"Failed to extract {archive_path.name}: corrupt archive ({e})")
        except OSError as e:
            logger.warning(f"Failed to extract {archive_path.name}: {e}")

        discard(destination)
        return False

    def find_entry(self, archive: zipfile.ZipFile, expected_name: str) -> zipfile.ZipInfo | None:
        """Return the first file entry whose base name matches, ignoring case."""
        wanted = expected_name.lower()
        for info in archive.infolist():
            if info.is_dir():
                continue
            base_name = PurePosixPath(info.filename.replace("\\", "/")).name
            if base_name.lower() == wanted:
                return info
        return None
