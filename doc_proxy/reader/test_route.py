from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import AsyncClient

from doc_proxy.reader.route import (
    build_reader_url,
    handle_reader_proxy,
    markdown_to_html,
)


class TestBuildReaderUrl:
    def test_target_appended_to_base(self):
        assert (
            build_reader_url("/jina/https://example.com")
            == "https://r.jina.ai/https://example.com"
        )

    def test_only_leading_prefix_is_stripped(self):
        assert (
            build_reader_url("/jina/https://example.com/jina/page")
            == "https://r.jina.ai/https://example.com/jina/page"
        )

    def test_base_without_trailing_slash(self):
        with patch("doc_proxy.reader.route.READER_BASE_URL", "http://reader.local"):
            assert build_reader_url("/jina/example.com") == "http://reader.local/example.com"


class TestMarkdownToHtml:
    def test_heading(self):
        assert markdown_to_html("# Title") == "<h1>Title</h1>\n"

    def test_common_constructs(self):
        html = markdown_to_html(
            "Some *emphasis* and [a link](https://example.com).\n\n"
            "- one\n- two\n\n"
            "```\ncode block\n```\n"
        )

        assert "<em>emphasis</em>" in html
        assert '<a href="https://example.com">a link</a>' in html
        assert "<li>one</li>" in html
        assert "<pre><code>code block\n</code></pre>" in html

    def test_tables_and_strikethrough(self):
        html = markdown_to_html("| a | b |\n|---|---|\n| 1 | 2 |\n\n~~gone~~\n")

        assert "<table>" in html
        assert "<td>1</td>" in html
        assert "<s>gone</s>" in html


class TestHandleReaderProxy:
    @pytest.mark.asyncio
    async def test_markdown_converted_to_html(self, upstream_response, assert_cors):
        with patch.object(AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = upstream_response(content=b"# Title")

            result = await handle_reader_proxy("/jina/https://example.com")

        assert result.status_code == 200
        assert result.headers["content-type"].startswith("text/html")
        assert b"<h1>Title</h1>" in result.body
        assert_cors(result)

    @pytest.mark.asyncio
    async def test_request_headers(self, upstream_response):
        with patch.object(AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = upstream_response(content=b"text")

            await handle_reader_proxy("/jina/https://example.com")

        args, kwargs = mock_get.call_args
        assert args[0] == "https://r.jina.ai/https://example.com"
        assert kwargs["headers"]["Accept"] == "text/markdown, text/html"
        assert kwargs["headers"]["User-Agent"] == "Cloudflare Worker Proxy"

    @pytest.mark.asyncio
    async def test_client_follows_redirects(self, upstream_response):
        seen = {}
        original_init = AsyncClient.__init__

        def recording_init(self, *args, **kwargs):
            seen.update(kwargs)
            original_init(self, *args, **kwargs)

        with patch.object(AsyncClient, "__init__", recording_init), patch.object(
            AsyncClient, "get", new_callable=AsyncMock
        ) as mock_get:
            mock_get.return_value = upstream_response(content=b"text")

            await handle_reader_proxy("/jina/https://example.com")

        assert seen["follow_redirects"] is True
        assert isinstance(seen["timeout"], httpx.Timeout)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 451, 503])
    async def test_upstream_status_passed_through(
        self, upstream_response, assert_cors, status_code
    ):
        with patch.object(AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = upstream_response(
                status_code=status_code, content=b"upstream detail"
            )

            result = await handle_reader_proxy("/jina/https://example.com")

        assert result.status_code == status_code
        assert result.body == b"Error fetching Jina content"
        assert_cors(result)

    @pytest.mark.asyncio
    async def test_network_error_is_500(self, assert_cors):
        with patch.object(AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ConnectError("Connection refused")

            result = await handle_reader_proxy("/jina/https://example.com")

        assert result.status_code == 500
        assert result.body == b"Error processing Jina API request"
        assert_cors(result)

    @pytest.mark.asyncio
    async def test_timeout_is_504(self):
        with patch.object(AsyncClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ConnectTimeout("timed out")

            result = await handle_reader_proxy("/jina/https://example.com")

        assert result.status_code == 504

    @pytest.mark.asyncio
    async def test_conversion_failure_is_500(self, upstream_response):
        with patch.object(AsyncClient, "get", new_callable=AsyncMock) as mock_get, patch(
            "doc_proxy.reader.route.markdown_to_html",
            side_effect=RuntimeError("renderer broke"),
        ):
            mock_get.return_value = upstream_response(content=b"# Title")

            result = await handle_reader_proxy("/jina/https://example.com")

        assert result.status_code == 500
