"""URL decomposition and request-target composition."""

from collections.abc import Mapping
from typing import NamedTuple
from urllib.parse import quote

from tinyget.constants import (
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTPS_PORT,
    SECURE_SCHEME_PREFIX,
)


class ParsedUrl(NamedTuple):
    """The three parts of a URL that a request needs."""

    is_secure: bool
    host_port: str
    resource: str


def parse_url(url: str) -> ParsedUrl:
    """Split a URL into its secure flag, ``host:port`` and resource.

    Characters between the second and third slash form the host; the
    third slash and everything after it form the resource. The port is
    filled in from the scheme when the URL names none.

    Args:
        url: Absolute URL such as ``http://example.com:8080/path?q=1#top``.

    Returns:
        ParsedUrl with ``resource`` defaulting to ``/``.
    """
    host_chars: list[str] = []
    resource_chars: list[str] = []
    slashes = 0
    for char in url:
        if char == "/":
            slashes += 1
        elif slashes == 2:
            host_chars.append(char)
        if slashes >= 3:
            resource_chars.append(char)

    host_port = "".join(host_chars)
    resource = "".join(resource_chars) or "/"

    is_secure = url.startswith(SECURE_SCHEME_PREFIX)
    if ":" not in host_port:
        port = DEFAULT_HTTPS_PORT if is_secure else DEFAULT_HTTP_PORT
        host_port = f"{host_port}:{port}"

    return ParsedUrl(is_secure=is_secure, host_port=host_port, resource=resource)


def encode_query(params: Mapping[str, str]) -> str:
    """Percent-encode query parameters as ``key=value`` pairs joined by ``&``.

    Keys and values are encoded independently; only RFC 3986 unreserved
    characters are left as-is, so a space becomes ``%20``.
    """
    return "&".join(
        f"{quote(key, safe='')}={quote(value, safe='')}"
        for key, value in params.items()
    )


def build_target(resource: str, params: Mapping[str, str]) -> str:
    """Compose the request target from a resource and query parameters.

    Parameters go before any ``#fragment``. The first separator is ``?``
    unless the resource already carries a query string.

    Args:
        resource: Path with optional query and fragment.
        params: Query parameters to append.

    Returns:
        The resource with the encoded parameters added.
    """
    if not params:
        return resource

    path, hash_sign, fragment = resource.partition("#")
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{encode_query(params)}{hash_sign}{fragment}"


def split_fragment(resource: str) -> str | None:
    """Return the fragment of a resource, or None when it has none."""
    if "#" not in resource:
        return None
    return resource.split("#")[1]


def compose_url(is_secure: bool, host_port: str, resource: str) -> str:
    """Rebuild an absolute URL from its parsed parts."""
    scheme = "https" if is_secure else "http"
    return f"{scheme}://{host_port}{resource}"
