"""End-to-end orchestration of one migration run."""

import logging
from typing import Optional

import httpx

from tumblr_import.models.config import MigrationConfig
from tumblr_import.models.report import RunReport
from tumblr_import.services.converter import bundle_key, convert
from tumblr_import.services.fetcher import build_client
from tumblr_import.services.renderer import render
from tumblr_import.services.source import fetch_all
from tumblr_import.services.writer import write

logger = logging.getLogger(__name__)


async def _migrate(client: httpx.AsyncClient, config: MigrationConfig) -> RunReport:
    posts = await fetch_all(client, config)
    report = RunReport(posts_fetched=len(posts))
    logger.info("Converting %d posts into %s", len(posts), config.output_root)

    # Posts arrive oldest first and are processed one at a time so that
    # output and logs are reproducible across runs.
    claimed = set()
    for post in posts:
        document = convert(post, claimed)
        claimed.add(bundle_key(document))
        markdown = render(document.content)
        try:
            result = await write(document, markdown, client, config)
        except OSError as exc:
            logger.error("Failed to write post %s (%s): %s", post.id, document.slug, exc)
            report.documents_failed += 1
            continue
        report.documents_written += 1
        report.images_written += result.images_written
        report.images_failed += result.images_failed
        report.written.append(result.document_path)

    return report


async def run_migration(
    config: MigrationConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> RunReport:
    """Fetch, convert, render, and write every post of the legacy blog.

    A :class:`~tumblr_import.errors.ProtocolError` or HTTP error while reading
    the feed aborts the run; failures while writing one document are logged
    and the remaining documents are still processed.
    """
    if client is not None:
        return await _migrate(client, config)
    async with build_client(config.request_timeout) as owned_client:
        return await _migrate(owned_client, config)
