"""Image discovery and rewriting for post bodies.

Every remote ``<img>`` in a post body is assigned a local filename of the form
``{slug}-image-{n}{ext}`` and its tag is rewritten to point at ``./{filename}``.
Ordinals start at 1 and follow document order, so the same body always yields
the same filenames.  Downloading happens later, in the writer.
"""

import logging
import posixpath
from typing import List, NamedTuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from tumblr_import.errors import MalformedUrlError
from tumblr_import.models.document import ImageReference
from tumblr_import.services.fetcher import validate_url
from tumblr_import.services.html_utils import alt_text, best_image_url

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"
LOCAL_PREFIX = "./"

# Tumblr renders a visible "ALT" badge next to images that carry alt text.
ALT_HELPER_CLASS = "tmblr-alt-text-helper"


class ExtractionResult(NamedTuple):
    html: str
    images: List[ImageReference]


def image_filename(slug: str, ordinal: int, url: str) -> str:
    """Local filename for the *ordinal*-th image of a document."""
    extension = posixpath.splitext(urlparse(url).path)[1] or DEFAULT_EXTENSION
    return f"{slug}-image-{ordinal}{extension}"


def remove_alt_helpers(soup: BeautifulSoup) -> int:
    helpers = soup.find_all("span", class_=ALT_HELPER_CLASS)
    for helper in helpers:
        helper.decompose()
    return len(helpers)


def _is_local(img: Tag) -> bool:
    return (img.get("src") or "").startswith(LOCAL_PREFIX)


def extract_images(html: str, slug: str) -> ExtractionResult:
    """Rewrite remote images in *html* to local paths and list what to download.

    Figure images and standalone images are visited in a single pass in
    document order.  Images already pointing at a local ``./`` path are left
    alone, which makes the function idempotent on its own output.  Images
    whose best source is not an absolute http(s) URL are left untouched and
    produce no :class:`ImageReference`.
    """
    if not html:
        return ExtractionResult(html, [])

    soup = BeautifulSoup(html, "html.parser")
    changed = remove_alt_helpers(soup) > 0
    images: List[ImageReference] = []

    for img in soup.find_all("img"):
        if _is_local(img):
            continue

        src = best_image_url(img)
        if not src:
            continue
        try:
            validate_url(src)
        except MalformedUrlError as exc:
            logger.warning("Leaving image in %s unrewritten: %s", slug, exc)
            continue

        alt = alt_text(img)
        filename = image_filename(slug, len(images) + 1, src)
        images.append(ImageReference(remote_url=src, local_filename=filename, alt_text=alt))
        logger.debug("Mapped %s -> %s", src, filename)

        img.replace_with(soup.new_tag("img", src=LOCAL_PREFIX + filename, alt=alt))
        changed = True

    if not changed:
        return ExtractionResult(html, images)
    return ExtractionResult(str(soup), images)
