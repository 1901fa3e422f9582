"""Tumblr v1 read API client.

The legacy endpoint answers with a JavaScript assignment rather than plain
JSON::

    var tumblr_api_read = {"tumblelog": {...}, "posts-total": 120, "posts": [...]};

Pages are requested with ``num`` (page size, at most 50) and ``start``
(offset of the first post).
"""

import json
import logging
import re
from typing import List

import httpx
from pydantic import ValidationError

from tumblr_import.errors import ProtocolError, UnknownTypeError
from tumblr_import.models.config import MigrationConfig
from tumblr_import.models.feed import FeedPage
from tumblr_import.models.post import RawPost, parse_post
from tumblr_import.services.fetcher import fetch_text

logger = logging.getLogger(__name__)

_JSONP_RE = re.compile(r"var\s+tumblr_api_read\s*=\s*(\{.*\})\s*;?\s*$", re.DOTALL)


def parse_jsonp(body: str) -> FeedPage:
    """Decode a ``var tumblr_api_read = {...};`` envelope into a :class:`FeedPage`.

    Raises:
        ProtocolError: if the envelope, the JSON payload, or its shape is invalid.
    """
    match = _JSONP_RE.search(body.strip())
    if not match:
        raise ProtocolError("Response is not a tumblr_api_read JSONP envelope.")
    try:
        payload = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"JSONP payload is not valid JSON: {exc}") from exc
    try:
        return FeedPage.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"Unexpected feed payload shape: {exc}") from exc


def _decode_posts(items: List[dict]) -> List[RawPost]:
    posts: List[RawPost] = []
    for item in items:
        try:
            posts.append(parse_post(item))
        except UnknownTypeError as exc:
            logger.warning("Skipping post: %s", exc)
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed %s post %s: %s",
                item.get("type"),
                item.get("id"),
                exc,
            )
    return posts


async def fetch_page(client: httpx.AsyncClient, config: MigrationConfig, start: int) -> FeedPage:
    """Fetch and decode one page of the feed starting at offset *start*."""
    body = await fetch_text(
        client,
        config.source_url,
        params={"num": config.page_size, "start": start},
    )
    return parse_jsonp(body)


async def fetch_all(client: httpx.AsyncClient, config: MigrationConfig) -> List[RawPost]:
    """Fetch every post of the blog, oldest first.

    With ``config.paginate`` the ``start`` offset advances until ``posts-total``
    is reached or the feed returns an empty page; otherwise only the first
    page is read.  ``config.max_posts`` caps the number of raw records read.

    Raises:
        ProtocolError: if any page has an unrecognised envelope.
        httpx.HTTPError: on network or HTTP errors.
    """
    limit = config.max_posts
    items: List[dict] = []
    start = 0

    while True:
        page = await fetch_page(client, config, start)
        logger.info(
            "Fetched %d posts from %s (start=%d, posts-total=%d)",
            len(page.posts),
            config.source_url,
            start,
            page.posts_total,
        )
        items.extend(page.posts)
        start += len(page.posts)

        if not config.paginate or not page.posts:
            break
        if start >= page.posts_total:
            break
        if limit is not None and len(items) >= limit:
            break

    if limit is not None:
        items = items[:limit]

    posts = _decode_posts(items)
    # sorted() is stable, so posts sharing a timestamp keep feed order.
    return sorted(posts, key=lambda post: post.unix_timestamp)
