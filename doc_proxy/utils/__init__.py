from urllib.parse import quote

# Characters left alone by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def has_http_scheme(url: str) -> bool:
    return url[:7].lower() == "http://" or url[:8].lower() == "https://"
