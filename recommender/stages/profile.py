"""
Preference profiles — what an identity has recently engaged with.

Built either from the most recent signals of an authenticated identity (item
attributes looked up through the ContentProvider) or from an anonymous
session's aggregate. Shared by content-based matching, diversity sampling and
re-ranking context.
"""

from typing import List, Set

from pydantic import BaseModel, Field

from ..models.content import ContentFilter, ContentOrder
from ..models.session import SessionBehavior
from ..models.signal import Signal
from ..providers import ContentProvider


class PreferenceProfile(BaseModel):
    category_ids: Set[str] = Field(default_factory=set)
    tag_ids: Set[str] = Field(default_factory=set)
    # One entry per contributing signal, so repeated creators stay visible.
    creator_ids: List[str] = Field(default_factory=list)
    seen_ids: Set[str] = Field(default_factory=set)

    @property
    def has_preferences(self) -> bool:
        return bool(self.category_ids or self.tag_ids or self.creator_ids)

    def recent_category_ids(self) -> List[str]:
        return sorted(self.category_ids)


async def profile_from_signals(
    signals: List[Signal],
    content_provider: ContentProvider,
) -> PreferenceProfile:
    """
    Aggregate signals (most recent first) into a profile.

    Every signal marks its content as seen; skip signals contribute nothing else.
    Content that no longer exists is ignored.
    """
    profile = PreferenceProfile(seen_ids={s.content_id for s in signals})
    preferred = [s for s in signals if s.contributes_preferences]
    if not preferred:
        return profile

    lookup = ContentFilter(
        status=None,
        public_only=False,
        id_in=list(dict.fromkeys(s.content_id for s in preferred)),
    )
    items = await content_provider.find_content(lookup, ContentOrder.AS_REQUESTED)
    by_id = {c.id: c for c in items}

    for signal in preferred:
        item = by_id.get(signal.content_id)
        if item is None:
            continue
        profile.category_ids.update(item.category_ids)
        profile.tag_ids.update(item.tag_ids)
        if item.creator_id:
            profile.creator_ids.append(item.creator_id)
    return profile


def profile_from_session(behavior: SessionBehavior) -> PreferenceProfile:
    """Session aggregates already carry category, tag and creator sets."""
    return PreferenceProfile(
        category_ids=set(behavior.category_ids),
        tag_ids=set(behavior.tag_ids),
        creator_ids=sorted(behavior.creator_ids),
        seen_ids=behavior.seen_ids(),
    )
