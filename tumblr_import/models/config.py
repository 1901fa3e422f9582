from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_SOURCE_URL = "https://mscottford.com/api/read/json"


class MigrationConfig(BaseModel):
    source_url: str = DEFAULT_SOURCE_URL
    output_root: Path = Path("content") / "posts"
    document_extension: str = ".mdx"
    page_size: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Posts requested per feed page (the legacy API caps this at 50).",
    )
    paginate: bool = Field(
        default=True,
        description="Follow ``posts-total`` across pages instead of reading only the first page.",
    )
    max_posts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Stop fetching once this many posts have been collected.",
    )
    request_timeout: float = Field(default=30.0, gt=0)
