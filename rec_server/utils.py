"""Pure helpers: content card formatting and the default page size."""

from typing import List

from recommender.models.scoring import ScoredCandidate

from .models import ContentCard

DEFAULT_PAGE_SIZE = 20


def to_content_card(candidate: ScoredCandidate, position: int) -> ContentCard:
    """Convert a ScoredCandidate to the API card (1-based position)."""
    item = candidate.item
    if item is None:
        return ContentCard(
            id=candidate.content_id,
            score=round(candidate.score, 4),
            source=candidate.source_strategy.value,
            position=position,
        )
    return ContentCard(
        id=item.id,
        title=item.title,
        creator_id=item.creator_id,
        category_ids=list(item.category_ids),
        tag_ids=list(item.tag_ids),
        view_count=item.view_count,
        published_at=item.published_at.isoformat() if item.published_at else None,
        duration_seconds=item.duration_seconds,
        score=round(candidate.score, 4),
        source=candidate.source_strategy.value,
        position=position,
    )


def to_content_cards(candidates: List[ScoredCandidate]) -> List[ContentCard]:
    return [to_content_card(c, i) for i, c in enumerate(candidates, start=1)]
