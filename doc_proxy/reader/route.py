import logging

from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from markdown_it import MarkdownIt
from opentelemetry import trace

from doc_proxy.cors import add_cors_headers
from doc_proxy.utils.exception_logging import is_timeout, log_exception_with_details
from doc_proxy.utils.traced_requests import traced_request
from doc_proxy.utils.upstream import upstream_client
from doc_proxy.vars import READER_BASE_URL, READER_USER_AGENT

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

READER_PREFIX = "/jina/"

# CommonMark plus the GitHub table and strikethrough extensions
markdown_renderer = MarkdownIt("commonmark").enable(["table", "strikethrough"])


def build_reader_url(path: str) -> str:
    """Map ``/jina/<target>`` onto the reader service base URL."""
    target_path = path.replace(READER_PREFIX, "", 1)
    return f"{READER_BASE_URL.rstrip('/')}/{target_path}"


def markdown_to_html(markdown: str) -> str:
    return markdown_renderer.render(markdown)


async def handle_reader_proxy(path: str) -> Response:
    """Fetch a page through the reader service and return its Markdown as HTML."""
    reader_url = build_reader_url(path)

    with traced_request(
        tracer,
        operation="reader_proxy",
        target_url=reader_url,
        start_message=f"[Reader] Constructed reader URL: {reader_url}",
    ) as span:
        try:
            async with upstream_client(follow_redirects=True) as client:
                response = await client.get(
                    reader_url,
                    headers={
                        "Accept": "text/markdown, text/html",
                        "User-Agent": READER_USER_AGENT,
                    },
                )

            span.set_attribute("proxy.upstream_status", response.status_code)
            if not response.is_success:
                logger.error(
                    f"[Reader] Reader request failed with status: {response.status_code}"
                )
                return add_cors_headers(
                    PlainTextResponse(
                        "Error fetching Jina content", status_code=response.status_code
                    )
                )

            logger.info("[Reader] Markdown fetched successfully. Converting to HTML.")
            html_document = markdown_to_html(response.text)
            logger.info("[Reader] Markdown conversion successful. Sending HTML response.")
            return add_cors_headers(HTMLResponse(html_document))

        except Exception as e:
            log_exception_with_details(
                logger, "[Reader] Error processing reader request:", e
            )
            status_code = 504 if is_timeout(e) else 500
            span.set_attribute("proxy.error", type(e).__name__)
            return add_cors_headers(
                PlainTextResponse(
                    "Error processing Jina API request", status_code=status_code
                )
            )
