"""Small HTML helpers shared by the converter and the image extractor."""

import html
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

DESCRIPTION_LIMIT = 160

_WHITESPACE_RE = re.compile(r"\s+")


def decode_entities(text: str) -> str:
    """Decode named, decimal, and hexadecimal character references.

    Non-breaking spaces are folded into plain spaces so decoded text can be
    used directly in front matter.
    """
    return html.unescape(text).replace("\xa0", " ")


def _normalise_space(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.replace("\xa0", " ")).strip()


def strip_tags(fragment: str) -> str:
    """Return the visible text of *fragment* with entities decoded."""
    if not fragment:
        return ""
    return _normalise_space(BeautifulSoup(fragment, "html.parser").get_text())


def truncate(text: str, length: int, suffix: str = "") -> str:
    """Cut *text* to *length* characters, appending *suffix* when it was cut.

    The suffix is counted against the limit given to the caller: a
    ``DESCRIPTION_LIMIT`` of 160 with ``"..."`` keeps 157 characters of text.
    """
    if len(text) <= length:
        return text
    return text[: length - len(suffix)] + suffix


def extract_h1(fragment: str) -> Optional[str]:
    """Return the text of the first ``<h1>`` in *fragment*, if any."""
    if not fragment:
        return None
    h1 = BeautifulSoup(fragment, "lxml").find("h1")
    if h1 is None:
        return None
    return _normalise_space(h1.get_text()) or None


def extract_first_paragraph(fragment: str) -> str:
    """Return the first ``<p>`` of *fragment* as plain text, capped for descriptions."""
    if not fragment:
        return ""
    paragraph = BeautifulSoup(fragment, "lxml").find("p")
    if paragraph is None:
        return ""
    return truncate(_normalise_space(paragraph.get_text()), DESCRIPTION_LIMIT, "...")


def _srcset_width(descriptor: str) -> int:
    try:
        return int(descriptor.rstrip("wW"))
    except ValueError:
        return 0


def best_image_url(img: Tag) -> str:
    """Pick the widest candidate from ``srcset``, falling back to ``src``.

    ``srcset`` entries look like ``"url1 640w, url2 1280w"``.  Entries without a
    width descriptor count as width 0; ties keep the first candidate.
    """
    srcset = (img.get("srcset") or "").strip()
    if srcset:
        candidates = []
        for entry in srcset.split(","):
            parts = entry.split()
            if not parts:
                continue
            width = _srcset_width(parts[1]) if len(parts) > 1 else 0
            candidates.append((parts[0], width))
        if candidates:
            return max(candidates, key=lambda candidate: candidate[1])[0]
    return (img.get("src") or "").strip()


def alt_text(img: Tag) -> str:
    """Return the decoded ``alt`` attribute of *img* (empty when absent)."""
    return decode_entities(img.get("alt") or "")
