"""pymixpanel - Async Python client for Mixpanel event and profile tracking."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pymixpanel")
except PackageNotFoundError:
    __version__ = "0+local"
from pymixpanel.client import MixpanelClient
from pymixpanel.config import DrainOrder, MixpanelConfig
from pymixpanel.exceptions import (
    MixpanelConfigError,
    MixpanelError,
    MixpanelStorageError,
    MixpanelTransportError,
)
from pymixpanel.metadata import MetadataProvider, PlatformMetadataProvider, StaticMetadataProvider
from pymixpanel.models import DeviceMetadata, Event, IdentityState, ProfileUpdate
from pymixpanel.state import LifecycleState
from pymixpanel.storage import JsonFileStorage, MemoryStorage, PropertyStorage

__all__ = [
    "__version__",
    "DeviceMetadata",
    "DrainOrder",
    "Event",
    "IdentityState",
    "JsonFileStorage",
    "LifecycleState",
    "MemoryStorage",
    "MetadataProvider",
    "MixpanelClient",
    "MixpanelConfig",
    "MixpanelConfigError",
    "MixpanelError",
    "MixpanelStorageError",
    "MixpanelTransportError",
    "PlatformMetadataProvider",
    "ProfileUpdate",
    "PropertyStorage",
    "StaticMetadataProvider",
]
