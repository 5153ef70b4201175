"""Tests for the base Client class."""

import httpx
import pytest

from twic_aggregator.clients import (
    APIError,
    Client,
    ConnectionError,
    MethodNotAllowedError,
    NotFoundError,
    RedirectError,
    RequestTimeoutError,
)


class ConcreteClient(Client):
    """Concrete implementation of Client for testing."""

    def fetch(self, *args, **kwargs):
        return self.get("test")


def client_answering(handler) -> ConcreteClient:
    """Client whose requests are answered by handler."""
    return ConcreteClient(
        {"base_url": "https://api.example.com/"},
        transport=httpx.MockTransport(handler),
    )


class TestClientConfiguration:
    """Tests for Client configuration."""

    def test_requires_base_url(self):
        """Client raises ValueError if base_url is missing."""
        with pytest.raises(ValueError, match="base_url"):
            ConcreteClient({})

    def test_base_url_from_config(self):
        """Client stores base_url from config."""
        client = ConcreteClient({"base_url": "https://api.example.com"})

        assert client.base_url == "https://api.example.com"

    def test_default_timeout(self):
        """Client has default timeout of 30 seconds."""
        client = ConcreteClient({"base_url": "https://api.example.com"})

        assert client.timeout == 30

    def test_custom_timeout(self):
        """Client accepts custom timeout."""
        client = ConcreteClient({"base_url": "https://api.example.com", "timeout": 60})

        assert client.timeout == 60

    def test_default_headers(self):
        """Client has empty default headers."""
        client = ConcreteClient({"base_url": "https://api.example.com"})

        assert client.headers == {}

    def test_custom_headers(self):
        """Client accepts custom headers."""
        headers = {"Authorization": "Bearer token123"}
        client = ConcreteClient({"base_url": "https://api.example.com", "headers": headers})

        assert client.headers == headers

    def test_repr(self):
        """repr shows the class and base URL."""
        client = ConcreteClient({"base_url": "https://api.example.com"})

        assert repr(client) == "ConcreteClient('https://api.example.com')"


class TestClientLifecycle:
    """Tests for Client lifecycle management."""

    def test_lazy_client_initialization(self):
        """httpx.Client is not created until accessed."""
        client = ConcreteClient({"base_url": "https://api.example.com"})

        assert client._client is None

    def test_client_initialized_on_access(self):
        """httpx.Client is created when client property is accessed."""
        client = ConcreteClient({"base_url": "https://api.example.com"})

        _ = client.client

        assert isinstance(client._client, httpx.Client)
        assert client._client.follow_redirects is False

        client.close()

    def test_context_manager_closes_client(self):
        """Context manager closes the httpx client on exit."""
        with ConcreteClient({"base_url": "https://api.example.com"}) as client:
            _ = client.client
            assert client._client is not None

        assert client._client is None

    def test_close_when_not_initialized(self):
        """Calling close when client not initialized is safe."""
        client = ConcreteClient({"base_url": "https://api.example.com"})
        client.close()


class TestClientResponses:
    """Tests for mapping responses to exceptions."""

    def test_success_returns_response(self):
        """2xx responses are returned."""
        with client_answering(lambda request: httpx.Response(200, text="ok")) as client:
            response = client.fetch()

        assert response.text == "ok"

    def test_request_uses_base_url(self):
        """Paths are resolved against the base URL."""
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200)

        with client_answering(handler) as client:
            client.head("twic920g.zip")

        assert seen == ["https://api.example.com/twic920g.zip"]

    @pytest.mark.parametrize("status_code", [301, 302, 307])
    def test_redirect_is_not_followed(self, status_code):
        """3xx responses raise RedirectError with the location."""

        def handler(request):
            return httpx.Response(status_code, headers={"location": "https://elsewhere.test/x"})

        with client_answering(handler) as client:
            with pytest.raises(RedirectError) as exc_info:
                client.fetch()

        assert exc_info.value.status_code == status_code
        assert exc_info.value.location == "https://elsewhere.test/x"

    def test_not_found(self):
        """404 responses raise NotFoundError."""
        with client_answering(lambda request: httpx.Response(404)) as client:
            with pytest.raises(NotFoundError):
                client.fetch()

    def test_method_not_allowed(self):
        """405 responses raise MethodNotAllowedError."""
        with client_answering(lambda request: httpx.Response(405)) as client:
            with pytest.raises(MethodNotAllowedError):
                client.head("test")

    def test_server_error(self):
        """Other error statuses raise APIError with the status code."""
        with client_answering(lambda request: httpx.Response(503)) as client:
            with pytest.raises(APIError) as exc_info:
                client.fetch()

        assert exc_info.value.status_code == 503
        assert "Service Unavailable" in exc_info.value.message

    def test_timeout(self):
        """httpx timeouts raise RequestTimeoutError."""

        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with client_answering(handler) as client:
            with pytest.raises(RequestTimeoutError):
                client.fetch()

    def test_connection_failure(self):
        """httpx transport errors raise ConnectionError."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with client_answering(handler) as client:
            with pytest.raises(ConnectionError) as exc_info:
                client.fetch()

        assert not isinstance(exc_info.value, RequestTimeoutError)

    def test_stream_maps_errors(self):
        """Streaming requests map error statuses the same way."""
        with client_answering(lambda request: httpx.Response(404)) as client:
            with pytest.raises(NotFoundError):
                with client._stream("GET", "missing"):
                    pass

    def test_stream_yields_response(self):
        """Streaming requests yield the response for lazy reading."""
        with client_answering(lambda request: httpx.Response(200, content=b"abc")) as client:
            with client._stream("GET", "file") as response:
                body = b"".join(response.iter_bytes())

        assert body == b"abc"
