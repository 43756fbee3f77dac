import logging
from typing import Iterable, Optional, Tuple

from fastapi.responses import HTMLResponse, Response
from opentelemetry import trace

from doc_proxy.cors import add_cors_headers
from doc_proxy.pdf_extraction.route import handle_pdf_extraction
from doc_proxy.utils import encode_uri_component, has_http_scheme
from doc_proxy.utils.exception_logging import is_timeout, log_exception_with_details
from doc_proxy.utils.traced_requests import traced_request
from doc_proxy.utils.upstream import upstream_client

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

API_PREFIX = "/api/"


def build_target_url(path: str, query_params: Iterable[Tuple[str, str]]) -> str:
    """
    Turn ``/api/<target>`` plus the inbound query string into the URL to fetch.
    Targets without an http(s) scheme are assumed to be plain http.
    """
    target_url = path.replace(API_PREFIX, "", 1)
    if not has_http_scheme(target_url):
        target_url = "http://" + target_url
    logger.info(f"[API-Proxy] Target URL constructed: {target_url}")

    query = "&".join(
        f"{key}={encode_uri_component(value)}" for key, value in query_params
    )
    return f"{target_url}?{query}" if query else target_url


def media_type_of(content_type: Optional[str]) -> Optional[str]:
    """Lower-cased media type without parameters, or None when absent."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


def _error_page(message: str, status_code: int) -> Response:
    return add_cors_headers(HTMLResponse(f"<h1>{message}</h1>", status_code=status_code))


async def handle_api_proxy(
    path: str, query_params: Iterable[Tuple[str, str]]
) -> Response:
    """
    Probe the target with HEAD and serve it according to its content type:
    HTML is passed through, PDFs are handed to the extraction handler and
    anything else is refused with 415.
    """
    full_url = build_target_url(path, query_params)

    with traced_request(
        tracer,
        operation="api_proxy",
        target_url=full_url,
        start_message=f"[API-Proxy] Full URL with query params: {full_url}",
    ) as span:
        try:
            async with upstream_client() as client:
                logger.info("[API-Proxy] Starting HEAD request to check content type...")
                head_response = await client.head(full_url)
                content_type = head_response.headers.get("content-type")
                logger.info(f"[API-Proxy] Content-Type detected: {content_type}")
                span.set_attribute("proxy.content_type", content_type or "")

                if content_type is not None and "text/html" in content_type.lower():
                    logger.info("[API-Proxy] HTML page detected. Fetching HTML content.")
                    html_response = await client.get(full_url)
                    logger.info("[API-Proxy] HTML content fetched successfully.")
                    return add_cors_headers(HTMLResponse(html_response.text))

            if media_type_of(content_type) == "application/pdf":
                logger.info("[API-Proxy] PDF detected. Handing off to extraction.")
                return await handle_pdf_extraction({"url": full_url})

            logger.error(f"[API-Proxy] Unsupported content type: {content_type}")
            return _error_page("Unsupported content type", 415)

        except Exception as e:
            log_exception_with_details(logger, "[API-Proxy] Error processing URL:", e)
            span.set_attribute("proxy.error", type(e).__name__)
            if is_timeout(e):
                return _error_page("Upstream timeout", 504)
            return _error_page("Error processing URL", 500)
