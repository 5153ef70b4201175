"""Cooperative cancellation for builds.

A build owns exactly one CancellationSource. Every suspending operation
(network transfer, archive extraction, merge) receives the source's token and
checks it between chunks, so a cancel request unwinds through each
operation's own cleanup path instead of interrupting it mid-write.
"""

import threading


class BuildCanceled(Exception):
    """Raised when a cancellation token is observed as cancelled.

    Attributes:
        token: The token that was cancelled
    """

    def __init__(self, token: "CancellationToken", message: str = "Build canceled"):
        self.token = token
        self.message = message
        super().__init__(message)


class CancellationToken:
    """Read-only view of a cancellation request.

    Examples:
        >>> source = CancellationSource()
        >>> token = source.token
        >>> token.is_cancelled()
        False
        >>> source.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self, event: threading.Event | None = None) -> None:
        self._event = event or threading.Event()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise BuildCanceled if cancellation has been requested."""
        if self._event.is_set():
            raise BuildCanceled(self)


class CancellationSource:
    """Owner of a cancellation request.

    Only the holder of the source can cancel; everything else receives the
    token.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._token = CancellationToken(self._event)

    @property
    def token(self) -> CancellationToken:
        return self._token

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


NEVER_CANCELLED = CancellationToken()
