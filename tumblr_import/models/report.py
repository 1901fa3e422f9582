from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class WriteResult(BaseModel):
    """Outcome of writing one bundle."""

    document_path: Path
    images_written: int
    images_failed: int


class RunReport(BaseModel):
    posts_fetched: int = 0
    documents_written: int = 0
    documents_failed: int = 0
    images_written: int = 0
    images_failed: int = 0
    written: List[Path] = Field(default_factory=list)
