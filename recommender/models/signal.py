"""
Signal model — one immutable interaction of an identity with a content item.

Built from store rows via Signal.model_validate(d).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .content import as_utc


class SignalKind(str, Enum):
    VIEW = "view"
    LIKE = "like"
    SAVE = "save"
    SHARE = "share"
    SKIP = "skip"


class Signal(BaseModel):
    """
    A single interaction (view, like, save, share, skip).

    identity_ref: user id for authenticated identities.
    completion_rate: fraction of the item watched (0-1) when known; used by
    continue-watching.
    """

    model_config = ConfigDict(frozen=True)

    identity_ref: str
    content_id: str
    kind: SignalKind = SignalKind.VIEW
    timestamp: datetime
    watch_duration_seconds: Optional[float] = Field(default=None, ge=0)
    completion_rate: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def contributes_preferences(self) -> bool:
        """Skips mark content as seen but say nothing about what the identity likes."""
        return self.kind != SignalKind.SKIP
