"""Common Pydantic models shared across routes."""

from typing import List, Optional

from pydantic import BaseModel


class ContentCard(BaseModel):
    id: str
    title: Optional[str] = None
    creator_id: str = ""
    category_ids: List[str] = []
    tag_ids: List[str] = []
    view_count: int = 0
    published_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    score: float
    source: str
    position: int
