"""Exceptions raised by the recommendation engine."""


class InvalidRecommendationRequest(ValueError):
    """Request rejected before any I/O (bad limit, identity, id or period)."""


class ContentNotFound(LookupError):
    """A referenced content id does not exist."""

    def __init__(self, content_id: str):
        super().__init__(f"Content not found: {content_id}")
        self.content_id = content_id
