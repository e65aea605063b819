"""
Content model — typed representation of a content item for the recommendation pipeline.

Used by every strategy instead of raw query rows. Built from store/API dicts via
ContentItem.model_validate(d). ContentFilter is the typed form of a content query;
in-memory providers evaluate it with ContentFilter.matches().
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, field_validator

STATUS_PUBLISHED = "PUBLISHED"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; leave aware ones untouched."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ContentItem(BaseModel):
    """
    Content payload used across the strategies.

    Counters default to 0 and optional attributes to None to support partial
    rows from stores. mobile_optimized defaults to True: content is assumed
    mobile-friendly unless the catalog says otherwise.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    creator_id: str = ""
    category_ids: List[str] = []
    tag_ids: List[str] = []
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    published_at: Optional[datetime] = None
    is_public: bool = True
    status: str = STATUS_PUBLISHED
    title: Optional[str] = None
    duration_seconds: Optional[float] = None
    mobile_optimized: bool = True

    @field_validator("published_at")
    @classmethod
    def _utc_published_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @property
    def is_live(self) -> bool:
        """Published and publicly visible."""
        return self.status == STATUS_PUBLISHED and self.is_public


class ContentOrder(str, Enum):
    """Orderings supported by ContentProvider.find_content."""

    # view_count desc, ties by most recently published
    VIEW_COUNT_DESC = "view_count_desc"
    PUBLISHED_AT_DESC = "published_at_desc"
    # keep the order of ContentFilter.id_in
    AS_REQUESTED = "as_requested"


class ContentFilter(BaseModel):
    """
    Typed content query.

    status / public_only restrict to live content (set status=None and
    public_only=False to look up any item). category_in / tag_in / creator_in
    are combined with OR; empty or None sets are ignored. *_not_in sets exclude any overlap.
    """

    status: Optional[str] = STATUS_PUBLISHED
    public_only: bool = True
    category_in: Optional[Set[str]] = None
    tag_in: Optional[Set[str]] = None
    creator_in: Optional[Set[str]] = None
    category_not_in: Optional[Set[str]] = None
    creator_not_in: Optional[Set[str]] = None
    id_in: Optional[List[str]] = None
    exclude_ids: Optional[Set[str]] = None
    published_after: Optional[datetime] = None
    min_view_count: Optional[int] = None

    @field_validator("published_after")
    @classmethod
    def _utc_published_after(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def _positive_clauses(self, item: ContentItem) -> List[bool]:
        clauses = []
        if self.category_in:
            clauses.append(bool(self.category_in.intersection(item.category_ids)))
        if self.tag_in:
            clauses.append(bool(self.tag_in.intersection(item.tag_ids)))
        if self.creator_in:
            clauses.append(item.creator_id in self.creator_in)
        return clauses

    def matches(self, item: ContentItem) -> bool:
        """True if item satisfies every constraint of this filter."""
        if self.status is not None and item.status != self.status:
            return False
        if self.public_only and not item.is_public:
            return False
        if self.id_in is not None and item.id not in self.id_in:
            return False
        if self.exclude_ids and item.id in self.exclude_ids:
            return False
        if self.published_after is not None:
            if item.published_at is None or item.published_at < self.published_after:
                return False
        if self.min_view_count is not None and item.view_count <= self.min_view_count:
            return False
        if self.category_not_in and self.category_not_in.intersection(item.category_ids):
            return False
        if self.creator_not_in and item.creator_id in self.creator_not_in:
            return False
        clauses = self._positive_clauses(item)
        if clauses:
            return any(clauses)
        return True


def sort_content(
    items: List[ContentItem],
    order_by: ContentOrder,
    id_order: Optional[List[str]] = None,
) -> List[ContentItem]:
    """Sort items the way a ContentProvider must for the given ordering."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    if order_by == ContentOrder.VIEW_COUNT_DESC:
        return sorted(
            items,
            key=lambda c: (c.view_count, c.published_at or epoch),
            reverse=True,
        )
    if order_by == ContentOrder.PUBLISHED_AT_DESC:
        return sorted(items, key=lambda c: c.published_at or epoch, reverse=True)
    if id_order is not None:
        position = {cid: i for i, cid in enumerate(id_order)}
        return sorted(items, key=lambda c: position.get(c.id, len(position)))
    return list(items)
