from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class ImageReference(BaseModel):
    """A remote image found in a post body and the local file it maps to."""

    remote_url: str
    local_filename: str
    alt_text: str = ""


class NormalizedDocument(BaseModel):
    """Unified representation every legacy post type converges on."""

    title: str = Field(min_length=1)
    description: str = Field(max_length=160)
    content: str  # HTML body with image sources rewritten to local paths
    date: datetime
    slug: str = Field(pattern=r"^[a-z0-9-]+$")
    legacy_slug: str = ""
    legacy_id: str
    images: List[ImageReference] = Field(default_factory=list)
