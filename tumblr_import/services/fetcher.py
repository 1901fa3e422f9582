from typing import Mapping, Optional
from urllib.parse import urljoin, urlparse

import httpx

from tumblr_import.errors import MalformedUrlError

MAX_CONTENT_SIZE = 25 * 1024 * 1024  # 25 MB
TIMEOUT = 30  # seconds
MAX_REDIRECTS = 1
ALLOWED_SCHEMES = {"http", "https"}


def validate_url(url: str) -> None:
    """Raise MalformedUrlError unless *url* is an absolute http(s) URL."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        # Raises for non-numeric or out-of-range ports.
        parsed.port
    except ValueError as exc:
        raise MalformedUrlError(f"Unparseable URL {url!r}: {exc}") from exc

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise MalformedUrlError(f"Scheme '{parsed.scheme}' is not allowed in {url!r}.")

    if not hostname:
        raise MalformedUrlError(f"URL {url!r} has no hostname.")


def build_client(timeout: float = TIMEOUT) -> httpx.AsyncClient:
    """Create the shared client; redirects are followed by :func:`fetch_bytes`."""
    return httpx.AsyncClient(follow_redirects=False, timeout=timeout)


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Mapping[str, object]] = None,
) -> bytes:
    """Fetch *url* and return the response body.

    At most ``MAX_REDIRECTS`` redirect hops are followed; every destination is
    validated before the next request is made.

    Raises:
        MalformedUrlError: if the URL or a redirect target is not http(s).
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: on too many redirects or an oversized body.
    """
    validate_url(url)

    current_url = url
    for _ in range(MAX_REDIRECTS + 1):
        async with client.stream("GET", current_url, params=params) as response:
            if response.is_redirect:
                location = response.headers.get("location", "")
                next_url = urljoin(str(response.url), location)
                validate_url(next_url)
                current_url = next_url
                # The redirect target carries its own query string.
                params = None
                continue

            response.raise_for_status()

            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > MAX_CONTENT_SIZE:
                raise RuntimeError("Response body exceeds the maximum allowed size.")

            chunks = []
            total = 0
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > MAX_CONTENT_SIZE:
                    raise RuntimeError("Response body exceeds the maximum allowed size.")
                chunks.append(chunk)

            return b"".join(chunks)

    raise RuntimeError("Too many redirects.")


async def fetch_text(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Mapping[str, object]] = None,
) -> str:
    """Fetch *url* and decode the body as UTF-8 (undecodable bytes replaced)."""
    body = await fetch_bytes(client, url, params=params)
    return body.decode("utf-8", errors="replace")
