"""Command line interface: fetch a URL and print the response."""

import math
import sys

import click
import structlog

from tinyget import __version__
from tinyget.errors import InvalidUtf8InBodyError, TinygetError
from tinyget.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
)
from tinyget.request import get


logger = structlog.get_logger()


def _split_pair(value: str, separator: str, option: str) -> tuple[str, str]:
    key, found, rest = value.partition(separator)
    if not found or not key:
        msg = f"expected KEY{separator}VALUE, got {value!r}"
        raise click.BadParameter(msg, param_hint=option)
    if separator == ":":
        return key.strip(), rest.strip()
    return key, rest


def _finite_timeout(
    ctx: click.Context, param: click.Parameter, value: float | None
) -> float | None:
    if value is not None and not math.isfinite(value):
        msg = f"expected a finite number of seconds, got {value}"
        raise click.BadParameter(msg, ctx=ctx, param=param)
    return value


@click.command()
@click.version_option(version=__version__)
@click.argument("url")
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header as 'Name: value' (repeatable).",
)
@click.option(
    "--query",
    "-q",
    "queries",
    multiple=True,
    help="Query parameter as 'key=value' (repeatable).",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0),
    default=None,
    callback=_finite_timeout,
    help="Seconds before giving up (default: TINYGET_TIMEOUT or none).",
)
@click.option(
    "--max-redirects",
    type=click.IntRange(min=0),
    default=None,
    help="Maximum redirections to follow (default: 100).",
)
@click.option(
    "--include",
    "-i",
    is_flag=True,
    help="Print the status line and headers before the body.",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Use JSON format for logs (default: false).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging.",
)
def main(  # noqa: PLR0913
    url: str,
    headers: tuple[str, ...],
    queries: tuple[str, ...],
    timeout: float | None,
    max_redirects: int | None,
    include: bool,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Send a GET request to URL and print the response body."""
    configure_logging(verbose=verbose, json_format=json_logs)

    request = get(url)
    for header in headers:
        request = request.with_header(*_split_pair(header, ":", "--header"))
    for query in queries:
        request = request.with_query(*_split_pair(query, "=", "--query"))
    if timeout is not None:
        request = request.with_timeout(timeout)
    if max_redirects is not None:
        request = request.with_max_redirects(max_redirects)

    bind_request_context(request.url)
    try:
        response = request.send()
    except TinygetError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        clear_request_context()

    if include:
        click.echo(f"HTTP/1.1 {response.status_code} {response.reason_phrase}")
        for name, value in response.headers.items():
            click.echo(f"{name}: {value}")
        click.echo("")

    try:
        click.echo(response.as_str(), nl=False)
    except InvalidUtf8InBodyError:
        logger.debug("body_not_utf8", bytes=response.body_size)
        click.get_binary_stream("stdout").write(response.body)


if __name__ == "__main__":
    main()
