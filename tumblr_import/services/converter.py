"""Conversion of legacy Tumblr posts into :class:`NormalizedDocument` records."""

import logging
from html import escape
from typing import AbstractSet, NamedTuple

from tumblr_import.models.document import NormalizedDocument
from tumblr_import.models.post import (
    ConversationPost,
    LinkPost,
    PhotoPost,
    QuotePost,
    RawPost,
    RegularPost,
)
from tumblr_import.services.html_utils import (
    DESCRIPTION_LIMIT,
    decode_entities,
    extract_first_paragraph,
    extract_h1,
    strip_tags,
    truncate,
)
from tumblr_import.services.images import extract_images
from tumblr_import.services.normalizer import (
    date_directory,
    date_title,
    generate_slug,
    post_datetime,
    slugify,
)

logger = logging.getLogger(__name__)

# Type-specific descriptions are cut without an ellipsis.
_TYPED_DESCRIPTION_LENGTH = 157


class _Draft(NamedTuple):
    title: str
    html: str
    description: str


def _text_description(fragment: str) -> str:
    return truncate(strip_tags(fragment), _TYPED_DESCRIPTION_LENGTH)


def _draft_regular(post: RegularPost) -> _Draft:
    title = decode_entities(post.regular_title).strip()
    body = post.regular_body
    if not title and body:
        title = extract_h1(body) or ""
    return _Draft(title, body, "")


def _draft_quote(post: QuotePost) -> _Draft:
    body = f"<blockquote>{post.quote_text}</blockquote>\n"
    if post.quote_source:
        body += f"<p>— {post.quote_source}</p>"
    return _Draft("Quote", body, _text_description(post.quote_text))


def _draft_photo(post: PhotoPost) -> _Draft:
    photo_url = post.photo_url_1280 or post.photo_url_500
    caption = post.photo_caption
    body = f'<img src="{escape(photo_url)}" alt="" />\n{caption}' if photo_url else caption
    return _Draft("Photo", body, _text_description(caption))


def _draft_link(post: LinkPost) -> _Draft:
    title = decode_entities(post.link_text).strip() or "Link"
    body = f'<p><a href="{escape(post.link_url)}">{escape(title, quote=False)}</a></p>\n{post.link_description}'
    description = _text_description(post.link_description)
    if not description and post.link_url:
        description = f"Link to {post.link_url}"
    return _Draft(title, body, description)


def _draft_conversation(post: ConversationPost) -> _Draft:
    title = decode_entities(post.conversation_title).strip() or "Conversation"
    if post.conversation:
        body = "\n".join(
            f"<p><strong>{line.label}</strong> {line.phrase}</p>"
            for line in post.conversation
        )
    else:
        body = f"<pre>{post.conversation_text}</pre>"
    return _Draft(title, body, "")


def _draft(post: RawPost) -> _Draft:
    if isinstance(post, RegularPost):
        return _draft_regular(post)
    if isinstance(post, QuotePost):
        return _draft_quote(post)
    if isinstance(post, PhotoPost):
        return _draft_photo(post)
    if isinstance(post, LinkPost):
        return _draft_link(post)
    if isinstance(post, ConversationPost):
        return _draft_conversation(post)
    raise TypeError(f"Unsupported post variant: {type(post).__name__}")


def _unclaimed_slug(slug: str, day: str, legacy_id: str, taken: AbstractSet[str]) -> str:
    if f"{day}/{slug}" not in taken:
        return slug
    base = f"{slug}-{slugify(legacy_id) or 'post'}"
    candidate, counter = base, 2
    while f"{day}/{candidate}" in taken:
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def convert(post: RawPost, taken: AbstractSet[str] = frozenset()) -> NormalizedDocument:
    """Build the normalized document for *post*.

    The title falls back to ``Post from {Month Day, Year}``, the slug to the
    slugified title, and the description to the first paragraph of the body.
    The returned ``content`` already has its images rewritten to local paths.

    *taken* holds the ``{YYYY-MM-DD}/{slug}`` keys already claimed in this run
    (see :func:`bundle_key`); a clashing slug gets the post id appended so
    neither the document nor its images overwrite an earlier bundle.
    """
    date = post_datetime(post.unix_timestamp)
    title, html, description = _draft(post)

    if not title:
        title = date_title(date)

    slug = _unclaimed_slug(generate_slug(post.slug, title, post.id), date_directory(date), post.id, taken)
    extraction = extract_images(html, slug)

    if not description:
        description = extract_first_paragraph(html) or f"{title} - A blog post from {date.year}"

    logger.debug(
        "Converted %s post %s -> %s (%d images)",
        post.type,
        post.id,
        slug,
        len(extraction.images),
    )
    return NormalizedDocument(
        title=title,
        description=truncate(description, DESCRIPTION_LIMIT, "..."),
        content=extraction.html,
        date=date,
        slug=slug,
        legacy_slug=post.slug,
        legacy_id=post.id,
        images=extraction.images,
    )


def bundle_key(document: NormalizedDocument) -> str:
    """Key identifying where *document* lands inside the output tree."""
    return f"{date_directory(document.date)}/{document.slug}"
