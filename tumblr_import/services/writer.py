"""Materialise normalized documents as on-disk bundles.

A bundle is ``{output_root}/{YYYY-MM-DD}/`` holding ``{slug}.mdx`` and the
document's images.  Image download failures are logged and skipped; the
document itself is always written.  Writes go through a temporary file in the
target directory so an interrupted write never leaves a truncated file behind.
"""

import asyncio
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

import httpx

from tumblr_import.errors import DownloadError
from tumblr_import.models.config import MigrationConfig
from tumblr_import.models.document import ImageReference, NormalizedDocument
from tumblr_import.models.report import WriteResult
from tumblr_import.services.fetcher import fetch_bytes
from tumblr_import.services.normalizer import date_directory, iso_timestamp, make_frontmatter

logger = logging.getLogger(__name__)


@contextmanager
def _atomic_target(destination: Path) -> Iterator[Path]:
    """Yield a temporary path that replaces *destination* on success."""
    fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.")
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, destination)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_bytes_atomic(destination: Path, data: bytes) -> None:
    with _atomic_target(destination) as tmp_path:
        tmp_path.write_bytes(data)


def compose_document(document: NormalizedDocument, markdown: str) -> str:
    """Front matter followed by the rendered body, ending in one newline."""
    frontmatter = make_frontmatter(
        document.title,
        document.description,
        iso_timestamp(document.date),
        document.legacy_id,
        document.legacy_slug,
    )
    body = markdown.strip()
    return f"{frontmatter}\n\n{body}\n" if body else f"{frontmatter}\n"


def bundle_dir(document: NormalizedDocument, config: MigrationConfig) -> Path:
    return config.output_root / date_directory(document.date)


async def download_image(
    client: httpx.AsyncClient,
    image: ImageReference,
    directory: Path,
) -> Path:
    """Download one image into *directory*.

    Raises:
        DownloadError: if the image cannot be fetched or stored.
    """
    destination = directory / image.local_filename
    try:
        data = await fetch_bytes(client, image.remote_url)
    # ValueError covers MalformedUrlError and unparseable response headers.
    except (httpx.HTTPError, httpx.InvalidURL, ValueError, RuntimeError) as exc:
        raise DownloadError(image.remote_url, str(exc)) from exc
    try:
        write_bytes_atomic(destination, data)
    except OSError as exc:
        raise DownloadError(image.remote_url, str(exc)) from exc
    logger.debug("Saved %s to %s", image.remote_url, destination)
    return destination


async def _download_all(
    client: httpx.AsyncClient,
    images: List[ImageReference],
    directory: Path,
) -> int:
    """Download *images* concurrently; return how many were stored."""
    results = await asyncio.gather(
        *(download_image(client, image, directory) for image in images),
        return_exceptions=True,
    )
    stored = 0
    for result in results:
        if isinstance(result, DownloadError):
            logger.warning("%s", result)
        elif isinstance(result, BaseException):
            raise result
        else:
            stored += 1
    return stored


async def write(
    document: NormalizedDocument,
    markdown: str,
    client: httpx.AsyncClient,
    config: MigrationConfig,
) -> WriteResult:
    """Write *document* and its images to its dated bundle directory.

    Raises:
        OSError: if the bundle directory or the document file cannot be written.
    """
    directory = bundle_dir(document, config)
    directory.mkdir(parents=True, exist_ok=True)

    stored = await _download_all(client, document.images, directory)

    document_path = directory / f"{document.slug}{config.document_extension}"
    with _atomic_target(document_path) as tmp_path:
        tmp_path.write_text(compose_document(document, markdown), encoding="utf-8")
    logger.info("Created %s", document_path)

    return WriteResult(
        document_path=document_path,
        images_written=stored,
        images_failed=len(document.images) - stored,
    )
