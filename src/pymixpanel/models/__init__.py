"""Data models for pymixpanel."""

from pymixpanel.models.event import Event
from pymixpanel.models.identity import IdentityState
from pymixpanel.models.metadata import DeviceMetadata
from pymixpanel.models.profile import ProfileUpdate

__all__ = [
    "DeviceMetadata",
    "Event",
    "IdentityState",
    "ProfileUpdate",
]
