import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from doc_proxy.api_proxy.route import API_PREFIX, handle_api_proxy
from doc_proxy.cors import add_cors_headers
from doc_proxy.pdf_extraction.route import handle_pdf_extraction
from doc_proxy.reader.route import READER_PREFIX, handle_reader_proxy

router = APIRouter()

logger = logging.getLogger("uvicorn.error")

PDF_EXTRACTION_PREFIX = "/extract-pdf"


def request_path(request: Request) -> str:
    """
    Path as sent by the client, percent-encoding intact, so an encoded
    ``?``, ``#`` or ``/`` inside a proxied target stays part of the target.
    """
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.split(b"?", 1)[0].decode("latin-1")


def first_query_value(request: Request, name: str) -> dict:
    """First value of a query parameter, as a one-key mapping (empty when absent)."""
    values = request.query_params.getlist(name)
    return {name: values[0]} if values else {}


async def dispatch(request: Request) -> Response:
    """Route a request to a handler by path prefix. Unknown paths get a 404."""
    path = request_path(request)
    logger.info(f"[Router] Request received for path: {path}")

    if path.startswith(API_PREFIX):
        return await handle_api_proxy(path, request.query_params.multi_items())
    if path.startswith(READER_PREFIX):
        return await handle_reader_proxy(path)
    if path.startswith(PDF_EXTRACTION_PREFIX):
        return await handle_pdf_extraction(first_query_value(request, "url"))

    logger.error(f"[Router] Unknown path: {path}")
    return add_cors_headers(PlainTextResponse("Not Found", status_code=404))


@router.options("/{path:path}")
async def preflight(path: str):
    """Answer CORS preflight requests for every path."""
    return add_cors_headers(Response(status_code=204))


@router.api_route("/{path:path}", methods=["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH"])
async def proxy_all(request: Request, path: str):
    """Catch-all route handing every request to the dispatcher."""
    return await dispatch(request)
