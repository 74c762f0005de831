"""Redirect decisions and request rewriting."""

import structlog

from tinyget.constants import REDIRECT_STATUS_CODES, SCHEME_DELIMITER
from tinyget.errors import (
    InfiniteRedirectionLoopError,
    RedirectLocationMissingError,
    TooManyRedirectionsError,
)
from tinyget.request import Request
from tinyget.response import LazyResponse
from tinyget.url import parse_url, split_fragment


logger = structlog.get_logger()


def inherit_fragment(resource: str, original_resource: str) -> str:
    """Carry the original fragment over to a redirect target without one.

    A target with its own fragment keeps it (RFC 7231 section 7.1.2).

    Args:
        resource: Resource named by the Location header.
        original_resource: Resource that was redirected away from.

    Returns:
        The resource to request next.
    """
    if "#" in resource:
        return resource
    fragment = split_fragment(original_resource)
    if fragment is None:
        return resource
    return f"{resource}#{fragment}"


def redirect_to(request: Request, location: str) -> Request:
    """Derive the request that follows a redirection to ``location``.

    Absolute locations may change scheme, host, and port; anything else
    is a path on the current host. The replaced URL is appended to the
    redirect history.

    Args:
        request: Request that received the redirect.
        location: Value of the Location header.

    Returns:
        New request for the redirect target.

    Raises:
        TooManyRedirectionsError: If the history exceeds ``max_redirects``.
        InfiniteRedirectionLoopError: If the target was already visited.
    """
    if SCHEME_DELIMITER in location:
        is_secure, host_port, resource = parse_url(location)
    else:
        is_secure, host_port, resource = request.is_secure, request.host_port, location

    history = (*request.redirect_history, request.hop)
    redirected = request.model_copy(
        update={
            "is_secure": is_secure,
            "host_port": host_port,
            "resource": inherit_fragment(resource, request.resource),
            "query_params": {},
            "redirect_history": history,
        }
    )

    if len(history) > request.max_redirects:
        raise TooManyRedirectionsError
    if redirected.hop in history:
        raise InfiniteRedirectionLoopError
    return redirected


def get_redirect(request: Request, response: LazyResponse) -> Request | None:
    """Decide whether a response redirects and to which request.

    Args:
        request: Request that produced ``response``.
        response: Response with parsed status and headers.

    Returns:
        The next request, or None when ``response`` is final.

    Raises:
        RedirectLocationMissingError: If a redirect has no Location header.
    """
    if response.status_code not in REDIRECT_STATUS_CODES:
        return None

    location = response.headers.get("location")
    if location is None:
        raise RedirectLocationMissingError

    redirected = redirect_to(request, location)
    logger.debug(
        "redirect_resolved",
        status_code=response.status_code,
        from_url=request.url,
        to_url=redirected.url,
        hops=len(redirected.redirect_history),
    )
    return redirected
