import httpx

from doc_proxy.vars import PROXY_TIMEOUT


def upstream_client(**kwargs) -> httpx.AsyncClient:
    """Create the HTTP client used for every outbound call, with a bounded timeout."""
    kwargs.setdefault("timeout", httpx.Timeout(PROXY_TIMEOUT))
    return httpx.AsyncClient(**kwargs)
