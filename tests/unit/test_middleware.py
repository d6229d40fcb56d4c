"""Unit tests for middleware."""
import pytest
from unittest.mock import Mock

from app.middleware.logging import LoggingMiddleware


def make_request(path="/api/v1/polls", method="GET", headers=None):
    mock_request = Mock()
    mock_request.state = Mock()
    mock_request.method = method
    mock_request.url = Mock()
    mock_request.url.path = path
    mock_request.client = Mock()
    mock_request.client.host = "127.0.0.1"
    mock_request.query_params = {}
    mock_request.headers = headers or {}
    return mock_request


def make_response(status_code=200):
    mock_response = Mock()
    mock_response.headers = {}
    mock_response.status_code = status_code
    return mock_response


@pytest.mark.unit
class TestLoggingMiddleware:
    """Test logging middleware."""

    @pytest.mark.asyncio
    async def test_request_id_added_to_state_and_response(self):
        """Request ID is available to handlers and echoed in the response."""
        mock_request = make_request()
        mock_response = make_response()

        async def mock_call_next(request):
            assert isinstance(request.state.request_id, str)
            return mock_response

        middleware = LoggingMiddleware(Mock())
        response = await middleware.dispatch(mock_request, mock_call_next)

        assert len(mock_request.state.request_id) > 0
        assert response.headers["X-Request-ID"] == mock_request.state.request_id

    @pytest.mark.asyncio
    async def test_request_ids_are_unique(self):
        middleware = LoggingMiddleware(Mock())
        ids = []

        for _ in range(5):
            request = make_request()

            async def mock_call_next(req):
                return make_response()

            await middleware.dispatch(request, mock_call_next)
            ids.append(request.state.request_id)

        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_upstream_request_id_reused(self):
        mock_request = make_request(headers={"X-Request-ID": "proxy-abc123"})

        async def mock_call_next(request):
            return make_response()

        response = await LoggingMiddleware(Mock()).dispatch(mock_request, mock_call_next)

        assert response.headers["X-Request-ID"] == "proxy-abc123"

    @pytest.mark.asyncio
    async def test_malformed_upstream_request_id_replaced(self):
        mock_request = make_request(headers={"X-Request-ID": "bad id\nwith newline"})

        async def mock_call_next(request):
            return make_response()

        response = await LoggingMiddleware(Mock()).dispatch(mock_request, mock_call_next)

        assert response.headers["X-Request-ID"] != "bad id\nwith newline"

    @pytest.mark.asyncio
    async def test_exception_propagates(self):
        """Failures are logged and re-raised for the exception handlers."""
        async def mock_call_next(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await LoggingMiddleware(Mock()).dispatch(make_request(), mock_call_next)
