from fastapi.responses import Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Credentials": "true",
}


def add_cors_headers(response: Response) -> Response:
    """Set the cross-origin headers on a response, overwriting existing values."""
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response
