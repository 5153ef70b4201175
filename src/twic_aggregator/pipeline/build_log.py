"""Capture of human-readable log lines emitted during a build."""

import logging
from collections import deque
from typing import Callable

MAX_LOG_ENTRIES = 200
LOGGER_NAMESPACE = "twic_aggregator"
LOG_FORMAT = "%(asctime)s  %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


class BuildLogHandler(logging.Handler):
    """Logging handler that keeps the latest build log lines.

    Every record logged under the package namespace while the handler is
    attached is formatted, kept in a bounded buffer and forwarded to an
    optional callback.
    """

    def __init__(
        self,
        on_log: Callable[[str], None] | None = None,
        max_entries: int = MAX_LOG_ENTRIES,
        level: int = logging.INFO,
    ):
        super().__init__(level=level)
        self.on_log = on_log
        self.entries: deque[str] = deque(maxlen=max_entries)
        self._previous_level: int | None = None
        self.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self.entries.append(line)
            if self.on_log is not None:
                self.on_log(line)
        except Exception:
            self.handleError(record)

    def attach(self, namespace: str = LOGGER_NAMESPACE) -> "BuildLogHandler":
        logger = logging.getLogger(namespace)
        logger.addHandler(self)
        if logger.getEffectiveLevel() > self.level:
            self._previous_level = logger.level
            logger.setLevel(self.level)
        else:
            self._previous_level = None
        return self

    def detach(self, namespace: str = LOGGER_NAMESPACE) -> None:
        logger = logging.getLogger(namespace)
        logger.removeHandler(self)
        if self._previous_level is not None:
            logger.setLevel(self._previous_level)
            self._previous_level = None

    @property
    def lines(self) -> list[str]:
        return list(self.entries)
