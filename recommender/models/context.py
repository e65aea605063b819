"""
Request context — identity of the requester and situational re-ranking context.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class DeviceClass(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class Identity(BaseModel):
    """
    Who recommendations are for: an authenticated user or an anonymous session.

    A user id wins when both are present. Blank values count as missing.
    """

    user_id: Optional[str] = None
    session_id: Optional[str] = None

    @model_validator(mode="after")
    def require_one_ref(self):
        self.user_id = (self.user_id or "").strip() or None
        self.session_id = (self.session_id or "").strip() or None
        if self.user_id is None and self.session_id is None:
            raise ValueError("identity requires a user_id or a session_id")
        return self

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def ref(self) -> str:
        return self.user_id or self.session_id


class UserContext(BaseModel):
    """Situational context for contextual re-ranking."""

    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON
    device_class: DeviceClass = DeviceClass.DESKTOP
    recent_category_ids: List[str] = Field(default_factory=list)
    # Duplicates are meaningful: creator fatigue counts occurrences.
    recent_creator_ids: List[str] = Field(default_factory=list)


def time_of_day_for(moment: datetime) -> TimeOfDay:
    """Bucket the local hour: morning 5-11, afternoon 12-16, evening 17-21, night otherwise."""
    hour = moment.hour
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def device_class_for(user_agent: Optional[str]) -> DeviceClass:
    """Classify a User-Agent header string."""
    ua = user_agent or ""
    if "Mobile" in ua:
        return DeviceClass.MOBILE
    if "Tablet" in ua:
        return DeviceClass.TABLET
    return DeviceClass.DESKTOP
