import html
import logging
from typing import Mapping, Optional

from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from opentelemetry import trace

from doc_proxy.cors import add_cors_headers
from doc_proxy.utils import encode_uri_component
from doc_proxy.utils.exception_logging import is_timeout, log_exception_with_details
from doc_proxy.utils.traced_requests import traced_request
from doc_proxy.utils.upstream import upstream_client
from doc_proxy.vars import PDF_EXTRACTION_URL

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

PAGE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Extracted PDF Content</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 20px; }}
    pre {{ white-space: pre-wrap; word-wrap: break-word; }}
  </style>
</head>
<body>
  <h1>Extracted PDF Content</h1>
  <pre>{text}</pre>
</body>
</html>
"""


class PdfExtractionError(Exception):
    """The extraction service answered, but not with usable text."""


def build_extraction_url(pdf_url: str) -> str:
    return f"{PDF_EXTRACTION_URL}?url={encode_uri_component(pdf_url)}"


def render_pdf_page(text: str) -> str:
    """Embed extracted text in a minimal HTML page. The text is escaped."""
    return PAGE_TEMPLATE.format(text=html.escape(text, quote=False))


async def extract_pdf_text(pdf_url: str) -> str:
    """Ask the extraction service for the text of ``pdf_url``."""
    extraction_url = build_extraction_url(pdf_url)
    logger.info(f"[PDF] Calling PDF extraction API at: {extraction_url}")

    async with upstream_client() as client:
        response = await client.get(extraction_url)

    logger.info(
        f"[PDF] Received response from PDF extraction server. Status: {response.status_code}"
    )
    if not response.is_success:
        raise PdfExtractionError(
            f"Failed to fetch: {response.status_code} {response.reason_phrase}"
        )

    try:
        data = response.json()
    except ValueError as e:
        raise PdfExtractionError(f"Malformed JSON from extraction service: {e}")

    text = data.get("text") if isinstance(data, dict) else None
    if not isinstance(text, str):
        raise PdfExtractionError("Extraction service response has no 'text' field")
    return text


async def handle_pdf_extraction(query_params: Mapping[str, str]) -> Response:
    """
    Extract the text of the PDF named by the ``url`` query parameter and
    return it as an HTML page. Used directly by ``/extract-pdf`` and by the
    generic proxy when its target turns out to be a PDF.
    """
    pdf_url: Optional[str] = query_params.get("url")
    if not pdf_url:
        logger.error("[PDF] No PDF URL provided in query parameters.")
        return add_cors_headers(
            PlainTextResponse("Error: No PDF URL provided", status_code=400)
        )

    with traced_request(
        tracer,
        operation="pdf_extraction",
        target_url=pdf_url,
        start_message=f"[PDF] Extracting text from: {pdf_url}",
    ) as span:
        try:
            text = await extract_pdf_text(pdf_url)
        except Exception as e:
            log_exception_with_details(
                logger, "[PDF] Error fetching or processing PDF text:", e
            )
            status_code = 504 if is_timeout(e) else 500
            span.set_attribute("proxy.error", type(e).__name__)
            span.set_attribute("proxy.status_code", status_code)
            return add_cors_headers(
                PlainTextResponse("Error processing PDF text.", status_code=status_code)
            )

        logger.info("[PDF] PDF text extracted successfully. Sending HTML response.")
        span.set_attribute("proxy.status_code", 200)
        return add_cors_headers(HTMLResponse(render_pdf_page(text)))
