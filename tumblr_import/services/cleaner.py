"""Post-processing for Markdown produced by the renderer."""

import re

# "[  ](https://...)" left behind by anchors that only wrapped removed markup.
# Image syntax ("![](...)") is kept.
_EMPTY_LINK_RE = re.compile(r"(?<!!)\[\s*\]\([^)]*\)")

_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")

_TRAILING_BLANK_LINE_RE = re.compile(r"[ \t]+\n(?=\n)")


def clean_markdown(text: str) -> str:
    """Tidy converter output without changing its meaning."""
    if not text:
        return text
    text = _EMPTY_LINK_RE.sub("", text)
    text = _TRAILING_BLANK_LINE_RE.sub("\n", text)
    text = _EXCESS_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()
