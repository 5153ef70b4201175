"""Appending extracted payloads onto the consolidated output."""

import logging
from pathlib import Path
from typing import BinaryIO

from twic_aggregator.cancellation import NEVER_CANCELLED, BuildCanceled, CancellationToken
from twic_aggregator.files import copy_stream

logger = logging.getLogger(__name__)


class PayloadMerger:
    """Appends a payload file onto an open output stream.

    A merge is all or nothing: if copying fails or is cancelled part way,
    the output is truncated back to where it was before the merge started.
    """

    def append_to(
        self,
        source_path: Path,
        output: BinaryIO,
        token: CancellationToken = NEVER_CANCELLED,
    ) -> bool:
        """Stream source_path onto output and flush.

        Args:
            source_path: Payload file to append
            output: Binary stream opened for writing
            token: Cancellation token checked between chunks

        Returns:
            True if the whole payload was appended, False otherwise

        Raises:
            BuildCanceled: If the token is cancelled during the copy
        """
        logger.info(f"Merging {source_path.name}")

        start = output.tell()
        try:
            with source_path.open("rb") as source:
                copy_stream(source, output, token)
            output.flush()
            return True

        except BuildCanceled:
            self._rollback(output, start)
            raise
        except OSError as e:
            logger.warning(f"Failed to write to output: {e}")
            self._rollback(output, start)
            return False

    def _rollback(self, output: BinaryIO, offset: int) -> None:
        """Drop anything written past offset."""
        try:
            output.seek(offset)
            output.truncate()
            output.flush()
        except OSError as e:
            logger.error(f"Could not roll back partial merge at offset {offset}: {e}")
