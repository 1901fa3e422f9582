"""Tests for tumblr_import.services.converter.convert and post decoding."""

import re

import pytest

from tumblr_import.errors import UnknownTypeError
from tumblr_import.models.post import parse_post
from tumblr_import.services.converter import bundle_key, convert
from tumblr_import.services.renderer import render

# 2012-01-01T00:00:00Z
_TIMESTAMP = 1325376000
_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


def _post(post_type: str, **fields) -> dict:
    item = {"id": "1001", "slug": "", "unix-timestamp": _TIMESTAMP, "type": post_type}
    item.update(fields)
    return item


class TestParsePost:
    def test_unknown_type_rejected(self):
        with pytest.raises(UnknownTypeError):
            parse_post(_post("video"))

    def test_numeric_id_coerced_to_string(self):
        post = parse_post(_post("regular", id=12345))
        assert post.id == "12345"

    def test_null_fields_treated_as_empty(self):
        post = parse_post(_post("quote", **{"quote-source": None}))
        assert post.quote_source == ""

    def test_null_slug_and_conversation(self):
        post = parse_post(_post("conversation", slug=None, conversation=None))
        assert post.slug == ""
        assert post.conversation == []
        assert post.type == "conversation"

    def test_extra_feed_fields_ignored(self):
        post = parse_post(_post("link", **{"url-with-slug": "https://x.com/post/1", "format": "html"}))
        assert post.type == "link"


class TestConvertQuote:
    def test_quote_without_source(self):
        document = convert(parse_post(_post("quote", **{"quote-text": "<p>Live &amp; learn</p>"})))
        assert document.title == "Quote"
        assert document.description == "Live & learn"
        markdown = render(document.content)
        assert "> Live & learn" in markdown
        assert "—" not in markdown

    def test_quote_with_source(self):
        document = convert(
            parse_post(_post("quote", **{"quote-text": "Be kind", "quote-source": "Someone"}))
        )
        assert "<p>— Someone</p>" in document.content
        assert "— Someone" in render(document.content)

    def test_long_quote_description_is_cut(self):
        document = convert(parse_post(_post("quote", **{"quote-text": "q" * 400})))
        assert len(document.description) == 157


class TestConvertRegular:
    def test_title_from_h1(self):
        document = convert(
            parse_post(_post("regular", **{"regular-body": "<h1>Hello World</h1><p>Text</p>"}))
        )
        assert document.title == "Hello World"
        assert document.slug == "hello-world"
        assert document.description == "Text"

    def test_explicit_title_decoded(self):
        document = convert(
            parse_post(_post("regular", **{"regular-title": "Tips &amp; Tricks", "regular-body": "<p>x</p>"}))
        )
        assert document.title == "Tips & Tricks"

    def test_date_title_fallback(self):
        document = convert(parse_post(_post("regular", **{"regular-body": "<p>No heading</p>"})))
        assert document.title == "Post from January 1, 2012"
        assert document.slug == "post-from-january-1-2012"

    def test_body_passed_through(self):
        body = "<h1>Hi</h1><p>Some <em>text</em></p>"
        document = convert(parse_post(_post("regular", **{"regular-body": body})))
        assert document.content == body

    def test_description_fallback_without_paragraph(self):
        document = convert(
            parse_post(_post("regular", **{"regular-title": "Hi", "regular-body": "<div>loose</div>"}))
        )
        assert document.description == "Hi - A blog post from 2012"

    def test_long_first_paragraph_description(self):
        body = "<p>" + "a" * 300 + "</p>"
        document = convert(parse_post(_post("regular", **{"regular-title": "T", "regular-body": body})))
        assert len(document.description) == 160
        assert document.description.endswith("...")


class TestConvertPhoto:
    def test_photo_image_is_extracted(self):
        document = convert(
            parse_post(
                _post(
                    "photo",
                    slug="sunset-photo",
                    **{
                        "photo-url-1280": "https://64.media.tumblr.com/abc/tumblr_xyz_1280.jpg",
                        "photo-url-500": "https://64.media.tumblr.com/abc/tumblr_xyz_500.jpg",
                        "photo-caption": "<p>Sunset</p>",
                    },
                )
            )
        )
        assert document.title == "Photo"
        assert document.description == "Sunset"
        assert [i.local_filename for i in document.images] == ["sunset-photo-image-1.jpg"]
        assert document.images[0].remote_url.endswith("_1280.jpg")
        assert 'src="./sunset-photo-image-1.jpg"' in document.content

    def test_photo_url_is_attribute_escaped(self):
        url = 'https://x.com/p"q.jpg?a=1&b=2'
        document = convert(parse_post(_post("photo", **{"photo-url-1280": url})))
        assert [i.remote_url for i in document.images] == [url]

    def test_falls_back_to_500_url(self):
        document = convert(
            parse_post(_post("photo", **{"photo-url-500": "https://x.com/p_500.png"}))
        )
        assert document.images[0].remote_url == "https://x.com/p_500.png"

    def test_photo_without_url(self):
        document = convert(parse_post(_post("photo", **{"photo-caption": "<p>Lost</p>"})))
        assert document.images == []
        assert "<img" not in document.content


class TestConvertLink:
    def test_link_without_description(self):
        document = convert(
            parse_post(_post("link", **{"link-text": "Example &amp; Co", "link-url": "https://example.com"}))
        )
        assert document.title == "Example & Co"
        assert document.description == "Link to https://example.com"
        assert render(document.content) == "[Example & Co](https://example.com)"

    def test_link_defaults(self):
        document = convert(
            parse_post(_post("link", **{"link-url": "https://example.com", "link-description": "<p>Great read</p>"}))
        )
        assert document.title == "Link"
        assert document.description == "Great read"


class TestConvertConversation:
    def test_structured_lines(self):
        lines = [
            {"name": "Alice", "label": "Alice:", "phrase": "Hi"},
            {"name": "Bob", "label": "Bob:", "phrase": "Hello"},
        ]
        document = convert(parse_post(_post("conversation", conversation=lines)))
        assert document.title == "Conversation"
        assert "<p><strong>Alice:</strong> Hi</p>" in document.content
        assert "**Bob:** Hello" in render(document.content)

    def test_plain_text_fallback(self):
        document = convert(
            parse_post(
                _post(
                    "conversation",
                    **{"conversation-title": "Chat", "conversation-text": "A: hi\nB: yo"},
                )
            )
        )
        assert document.title == "Chat"
        assert document.content.startswith("<pre>")
        assert render(document.content) == "```\nA: hi\nB: yo\n```"


class TestConvertInvariants:
    @pytest.mark.parametrize(
        "item",
        [
            _post("regular"),
            _post("quote"),
            _post("photo"),
            _post("link"),
            _post("conversation"),
            _post("regular", slug="Weird Slug!!", **{"regular-title": "¿¿??"}),
            _post("regular", **{"regular-title": "!!!"}),
        ],
    )
    def test_title_and_slug(self, item):
        document = convert(parse_post(item))
        assert document.title
        assert _SLUG_RE.match(document.slug)
        assert len(document.description) <= 160

    def test_legacy_slug_preferred(self):
        document = convert(parse_post(_post("quote", slug="my-favourite-quote")))
        assert document.slug == "my-favourite-quote"
        assert document.legacy_slug == "my-favourite-quote"

    def test_legacy_identifiers_kept(self):
        document = convert(parse_post(_post("quote", id="42", slug="q")))
        assert document.legacy_id == "42"

    def test_unusable_title_uses_post_id(self):
        document = convert(parse_post(_post("regular", id="77", **{"regular-title": "!!!"})))
        assert document.slug == "post-77"


class TestConvertClaimedSlugs:
    def test_bundle_key(self):
        document = convert(parse_post(_post("quote", slug="q")))
        assert bundle_key(document) == "2012-01-01/q"

    def test_clashing_slug_gets_post_id(self):
        first = convert(parse_post(_post("quote", id="1")))
        second = convert(
            parse_post(_post("quote", id="2", **{"quote-text": '<img src="https://x.com/a.jpg">'})),
            {bundle_key(first)},
        )
        assert first.slug == "quote"
        assert second.slug == "quote-2"
        assert [i.local_filename for i in second.images] == ["quote-2-image-1.jpg"]

    def test_clash_on_other_day_keeps_slug(self):
        document = convert(parse_post(_post("quote", id="2")), {"2011-12-31/quote"})
        assert document.slug == "quote"

    def test_suffixed_slug_also_taken(self):
        document = convert(parse_post(_post("quote", id="2")), {"2012-01-01/quote", "2012-01-01/quote-2"})
        assert document.slug == "quote-2-2"
