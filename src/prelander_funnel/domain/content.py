"""Domain models for public landing and results content."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class LandingContent:
    """Hero copy for the landing page."""

    title: str
    description: str


@dataclass(frozen=True)
class Category:
    """Related search shown on the landing page."""

    id: UUID
    title: str
    webresult_page: str
    serial_number: int


@dataclass(frozen=True)
class WebResult:
    """Offer listed on a results page."""

    id: UUID
    webresult_page: str
    title: str
    description: str
    original_link: str
    serial_number: int
    is_sponsored: bool
    offer_name: str | None
    logo_url: str | None
    access_type: str
    allowed_countries: tuple[str, ...]


@dataclass(frozen=True)
class ResultsPage:
    """Results for one page key, split by placement."""

    sponsored: list[WebResult]
    regular: list[WebResult]


@dataclass(frozen=True)
class EmailCapture:
    """Email captured on a prelander."""

    id: UUID
    email: str
    web_result_id: UUID | None
    offer_title: str | None
    offer_name: str | None
    session_id: str | None
    device: str | None
    country: str | None
    ip_address: str | None
    redirected_to: str | None
    captured_at: datetime | None
