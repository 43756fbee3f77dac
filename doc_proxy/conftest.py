import httpx
import pytest

from doc_proxy.cors import CORS_HEADERS


@pytest.fixture
def upstream_response():
    """Build real httpx responses for patched client calls."""

    def _create_response(
        status_code=200, headers=None, content=b"", json=None, url="http://upstream.test/"
    ):
        return httpx.Response(
            status_code,
            headers=headers,
            content=content if json is None else None,
            json=json,
            request=httpx.Request("GET", url),
        )

    return _create_response


@pytest.fixture
def assert_cors():
    """Check that a response carries every CORS header with its fixed value."""

    def _assert(response):
        for name, value in CORS_HEADERS.items():
            assert response.headers[name] == value

    return _assert
