"""
Session behavior — TTL-bound aggregate of an anonymous session's interactions.

Stands in for persisted history when no user id is known. Stored in a
SessionCache; a missing or expired entry reads as an empty behavior.
"""

from datetime import datetime, timezone
from typing import List, Optional, Set

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionBehavior(BaseModel):
    """Recent content interactions of one anonymous session."""

    session_id: str
    # Insertion-ordered, no duplicates.
    viewed_content_ids: List[str] = Field(default_factory=list)
    liked_content_ids: Set[str] = Field(default_factory=set)
    category_ids: Set[str] = Field(default_factory=set)
    tag_ids: Set[str] = Field(default_factory=set)
    creator_ids: Set[str] = Field(default_factory=set)
    last_updated: datetime = Field(default_factory=_utcnow)

    @property
    def has_views(self) -> bool:
        return bool(self.viewed_content_ids)

    def seen_ids(self) -> Set[str]:
        return set(self.viewed_content_ids)

    def record_view(
        self,
        content_id: str,
        category_ids: Optional[List[str]] = None,
        tag_ids: Optional[List[str]] = None,
        creator_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        if content_id not in self.viewed_content_ids:
            self.viewed_content_ids.append(content_id)
        self.category_ids.update(category_ids or [])
        self.tag_ids.update(tag_ids or [])
        if creator_id:
            self.creator_ids.add(creator_id)
        self.last_updated = now or _utcnow()

    def record_like(self, content_id: str, now: Optional[datetime] = None) -> None:
        self.liked_content_ids.add(content_id)
        self.last_updated = now or _utcnow()
