"""Domain models for session analytics."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

UNKNOWN_IP = "unknown"
UNKNOWN_COUNTRY = "Unknown"


class ClickType(StrEnum):
    """Closed set of tracked interaction types."""

    RELATED_SEARCH = "related_search"
    RESULT = "result"


class Device(StrEnum):
    """Device class derived from the user agent."""

    MOBILE = "Mobile"
    TABLET = "Tablet"
    DESKTOP = "Desktop"


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Network and device details captured alongside a write."""

    ip_address: str = UNKNOWN_IP
    country: str = UNKNOWN_COUNTRY
    device: str = Device.DESKTOP.value
    source: str | None = None


@dataclass(frozen=True)
class SessionAggregate:
    """Running counters for one browser session."""

    id: UUID
    session_id: str
    page_views: int
    clicks: int
    unique_clicks: int
    related_searches: int
    result_clicks: int
    time_spent: int
    ip_address: str
    country: str | None
    device: str | None
    source: str | None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class ClickEvent:
    """Immutable ledger entry for a single click."""

    id: UUID
    session_id: str
    event_type: ClickType
    label: str | None
    target_url: str | None
    ip_address: str | None
    country: str | None
    device: str | None
    timestamp: datetime | None
