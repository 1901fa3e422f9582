"""HTML to Markdown rendering for normalized post bodies.

Generic conversion is delegated to markdownify; the overrides below handle
the markup Tumblr bodies contain that the generic rules get wrong:

* ``span.tmblr-alt-text-helper`` badges are dropped.
* ``<figure>`` elements holding an image become a single image reference
  (the caption is not rendered).
* ``<pre>`` blocks become fenced code blocks, keeping a ``language-*`` class
  on an inner ``<code>`` element as the fence info string.
"""

import re

from bs4 import Tag
from markdownify import ATX, MarkdownConverter

from tumblr_import.services.cleaner import clean_markdown
from tumblr_import.services.images import ALT_HELPER_CLASS

_LANGUAGE_CLASS_RE = re.compile(r"^language-(\w+)")


def _code_language(code: Tag) -> str:
    for css_class in code.get("class") or []:
        match = _LANGUAGE_CLASS_RE.match(css_class)
        if match:
            return match.group(1)
    return ""


def _fence(body: str, language: str = "") -> str:
    return f"\n\n```{language}\n{body.strip()}\n```\n\n"


class PostMarkdownConverter(MarkdownConverter):
    def convert_span(self, el, text, parent_tags):
        if ALT_HELPER_CLASS in (el.get("class") or []):
            return ""
        return text

    def convert_figure(self, el, text, parent_tags):
        img = el.find("img")
        if img is None:
            return text
        alt = img.get("alt") or ""
        src = img.get("src") or ""
        return f"\n\n![{alt}]({src})\n\n"

    def convert_pre(self, el, text, parent_tags):
        code = el.find("code")
        if code is not None:
            return _fence(code.get_text(), _code_language(code))
        return _fence(el.get_text())


def render(html: str) -> str:
    """Convert a post body to Markdown.

    Pure function: the same HTML always renders to the same Markdown and no
    network or filesystem access takes place.
    """
    if not html:
        return ""
    converter = PostMarkdownConverter(
        heading_style=ATX,
        bullets="-",
        escape_misc=False,
    )
    return clean_markdown(converter.convert(html))
