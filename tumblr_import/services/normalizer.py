"""Data normalisation utilities: slug generation, dates, frontmatter."""

import re
import unicodedata
from datetime import datetime, timezone


def slugify(value: str) -> str:
    """Lowercase *value*, keep ASCII only, and join alphanumeric runs with hyphens.

    Returns an empty string when nothing usable is left; callers decide the
    fallback.
    """
    # Normalise unicode, keep only ASCII
    slug = unicodedata.normalize("NFKD", value)
    slug = slug.encode("ascii", "ignore").decode("ascii")

    # Lowercase and replace runs of non-alphanumeric chars with a single hyphen
    slug = re.sub(r"[^a-z0-9]+", "-", slug.lower())
    return slug.strip("-")


def generate_slug(legacy_slug: str, title: str, legacy_id: str) -> str:
    """Return the document slug: the legacy slug if set, else the title, else ``post-{id}``."""
    return slugify(legacy_slug) or slugify(title) or f"post-{slugify(legacy_id) or 'untitled'}"


def post_datetime(unix_timestamp: int) -> datetime:
    return datetime.fromtimestamp(unix_timestamp, tz=timezone.utc)


def date_title(date: datetime) -> str:
    """Synthetic title for posts without one, e.g. ``Post from March 4, 2012``."""
    return f"Post from {date:%B} {date.day}, {date.year}"


def date_directory(date: datetime) -> str:
    return date.astimezone(timezone.utc).strftime("%Y-%m-%d")


def iso_timestamp(date: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return (
        date.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def make_frontmatter(
    title: str,
    description: str,
    date_time: str,
    tumblr_id: str,
    tumblr_slug: str,
) -> str:
    """Return a YAML frontmatter block for use in MDX files."""
    lines = [
        "---",
        f'title: "{_escape_yaml(title)}"',
        f'description: "{_escape_yaml(description)}"',
        f'dateTime: "{date_time}"',
        f'tumblrId: "{_escape_yaml(tumblr_id)}"',
        f'tumblrSlug: "{_escape_yaml(tumblr_slug)}"',
        "---",
    ]
    return "\n".join(lines)


def _escape_yaml(value: str) -> str:
    """Escape characters that would break inline double-quoted YAML strings."""
    return value.replace("\\", "\\\\").replace('"', '\\"')
