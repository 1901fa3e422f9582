from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Tumblelog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""
    name: str = ""


class FeedPage(BaseModel):
    """One decoded page of the ``/api/read/json`` feed.

    Posts are kept as raw dicts so that a single unknown or malformed record
    can be skipped without rejecting the whole page.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tumblelog: Tumblelog = Field(default_factory=Tumblelog)
    posts_total: int = Field(alias="posts-total")
    posts: List[dict] = Field(default_factory=list)
