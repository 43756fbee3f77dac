import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "doc-proxy")

READER_BASE_URL = os.getenv("READER_BASE_URL", "https://r.jina.ai/")
READER_USER_AGENT = os.getenv("READER_USER_AGENT", "Cloudflare Worker Proxy")
PDF_EXTRACTION_URL = os.getenv(
    "PDF_EXTRACTION_URL", "https://pdftotext-one.vercel.app/extract-pdf"
)

# Seconds; applies to connect, read, write and pool acquisition
PROXY_TIMEOUT = float(os.getenv("PROXY_TIMEOUT", "30"))

METRICS_ENABLED = os.getenv("METRICS_ENABLED", "true").lower() == "true"

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")


def parse_otlp_headers(raw: str) -> dict:
    """Parse ``key=value,key2=value2`` into a header dict, skipping malformed entries."""
    headers: dict = {}
    if not raw:
        return headers
    for entry in raw.split(","):
        if "=" not in entry:
            continue
        key, val = entry.split("=", 1)
        key = key.strip()
        val = val.strip()
        if key and val:
            headers[key] = val
    return headers
