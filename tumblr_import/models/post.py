"""Legacy Tumblr post records as returned by the ``/api/read/json`` feed.

The feed returns one flat record per post whose populated fields depend on
``type``.  Each post type is modelled as its own variant carrying only the
fields relevant to it; :data:`RawPost` is the closed union over the five
variants, discriminated on ``type``.
"""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from tumblr_import.errors import UnknownTypeError

POST_TYPES = ("regular", "quote", "photo", "link", "conversation")


def _empty_value(key: str):
    return [] if key == "conversation" else ""


class _BasePost(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str
    slug: str = ""
    unix_timestamp: int = Field(alias="unix-timestamp")

    @model_validator(mode="before")
    @classmethod
    def _null_as_empty(cls, data):
        # The feed emits null for blank fields on some older posts. The "type"
        # tag is left alone so the union can still discriminate on it.
        if not isinstance(data, dict):
            return data
        return {
            key: _empty_value(key) if value is None and key != "type" else value
            for key, value in data.items()
        }


class RegularPost(_BasePost):
    type: Literal["regular"] = "regular"
    regular_title: str = Field(default="", alias="regular-title")
    regular_body: str = Field(default="", alias="regular-body")


class QuotePost(_BasePost):
    type: Literal["quote"] = "quote"
    quote_text: str = Field(default="", alias="quote-text")
    quote_source: str = Field(default="", alias="quote-source")


class PhotoPost(_BasePost):
    type: Literal["photo"] = "photo"
    photo_caption: str = Field(default="", alias="photo-caption")
    photo_url_1280: str = Field(default="", alias="photo-url-1280")
    photo_url_500: str = Field(default="", alias="photo-url-500")


class LinkPost(_BasePost):
    type: Literal["link"] = "link"
    link_text: str = Field(default="", alias="link-text")
    link_url: str = Field(default="", alias="link-url")
    link_description: str = Field(default="", alias="link-description")


class ConversationLine(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    label: str = ""
    phrase: str = ""


class ConversationPost(_BasePost):
    type: Literal["conversation"] = "conversation"
    conversation_title: str = Field(default="", alias="conversation-title")
    conversation_text: str = Field(default="", alias="conversation-text")
    conversation: List[ConversationLine] = Field(default_factory=list)


RawPost = Annotated[
    Union[RegularPost, QuotePost, PhotoPost, LinkPost, ConversationPost],
    Field(discriminator="type"),
]

_RAW_POST_ADAPTER: TypeAdapter = TypeAdapter(RawPost)


def parse_post(data: dict) -> RawPost:
    """Validate one feed record into its :data:`RawPost` variant.

    Raises:
        UnknownTypeError: if ``type`` is not one of the five legacy post types.
        pydantic.ValidationError: if a known post type is missing required fields.
    """
    post_type = data.get("type")
    if post_type not in POST_TYPES:
        raise UnknownTypeError(post_type, data.get("id"))
    return _RAW_POST_ADAPTER.validate_python(data)
