"""Error taxonomy for the Tumblr import.

Only :class:`ProtocolError` aborts a run.  The other errors are raised and
handled inside a single post, image, or download so that one bad record never
stops the rest of the migration.
"""

from typing import Optional


class TumblrImportError(Exception):
    """Base class for all import errors."""


class ProtocolError(TumblrImportError):
    """The source feed returned a response envelope that could not be decoded."""


class UnknownTypeError(TumblrImportError):
    """A feed record carries a post type outside the five legacy types."""

    def __init__(self, post_type: Optional[str], post_id: Optional[str] = None) -> None:
        self.post_type = post_type
        self.post_id = post_id
        super().__init__(f"Unknown post type {post_type!r} (post {post_id})")


class MalformedUrlError(TumblrImportError, ValueError):
    """An image source is not an absolute http(s) URL."""


class DownloadError(TumblrImportError):
    """An image could not be downloaded or stored."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")
