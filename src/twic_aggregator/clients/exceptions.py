"""Custom exceptions for archive endpoint clients."""


class ClientError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class ConnectionError(ClientError):
    """Raised when the transport fails before a response is complete."""

    pass


class RequestTimeoutError(ConnectionError):
    """Raised when a request exceeds the client's timeout."""

    pass


class APIError(ClientError):
    """Raised when the server returns a non-2xx response."""

    def __init__(self, message: str, status_code: int, *args, **kwargs):
        self.status_code = status_code
        super().__init__(message, *args, **kwargs)


class RedirectError(APIError):
    """Raised when the server answers with a 3xx redirect."""

    def __init__(
        self,
        message: str = "Redirected",
        status_code: int = 302,
        location: str | None = None,
    ):
        self.location = location
        super().__init__(message, status_code=status_code)


class NotFoundError(APIError):
    """Raised when the server returns a 404 not found response."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class MethodNotAllowedError(APIError):
    """Raised when the server rejects the request method with a 405."""

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message, status_code=405)
