"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import httpx
import pytest

from prelander_funnel.adapters.geo_client import GeoLookupClient
from prelander_funnel.config import Settings
from prelander_funnel.containers import AppContainer, time_spent_writer
from prelander_funnel.domain.analytics import (
    ClickEvent,
    ClickType,
    EnvironmentSnapshot,
    SessionAggregate,
)
from prelander_funnel.domain.content import (
    Category,
    EmailCapture,
    LandingContent,
    WebResult,
)
from prelander_funnel.domain.prelander import OfferRecord
from prelander_funnel.services.admin import AdminRepository, AdminService
from prelander_funnel.services.analytics import AnalyticsRepository, AnalyticsService
from prelander_funnel.services.clicks import ClickLedger, ClickRepository
from prelander_funnel.services.content import ContentRepository, ContentService
from prelander_funnel.services.emails import (
    EmailCaptureRepository,
    EmailCaptureService,
)
from prelander_funnel.services.environment import EnvironmentSniffer
from prelander_funnel.services.prelander import (
    PrelanderPageService,
    PrelanderRepository,
    PrelanderResolver,
)
from prelander_funnel.services.time_spent import TimeSpentRegistry


@dataclass
class InMemoryAnalyticsRepository(AnalyticsRepository):
    """In-memory aggregate repository keyed by session id."""

    rows: dict[str, SessionAggregate] = field(default_factory=dict)
    creates: int = 0

    def get_aggregate(self, session_id: str) -> SessionAggregate | None:
        return self.rows.get(session_id)

    def create_aggregate(
        self, session_id: str, environment: EnvironmentSnapshot
    ) -> SessionAggregate:
        self.creates += 1
        row = SessionAggregate(
            id=uuid4(),
            session_id=session_id,
            page_views=1,
            clicks=0,
            unique_clicks=0,
            related_searches=0,
            result_clicks=0,
            time_spent=0,
            ip_address=environment.ip_address,
            country=environment.country,
            device=environment.device,
            source=environment.source,
            timestamp=datetime.now(tz=UTC),
        )
        self.rows[session_id] = row
        return row

    def update_aggregate(self, session_id: str, values: dict[str, int]) -> None:
        current = self.rows.get(session_id)
        if current is None:
            return
        self.rows[session_id] = replace(current, **values)

    def list_recent_aggregates(self, limit: int) -> list[SessionAggregate]:
        return list(self.rows.values())[:limit]


@dataclass
class FailingAnalyticsRepository(InMemoryAnalyticsRepository):
    """Aggregate repository whose writes always fail."""

    def create_aggregate(
        self, session_id: str, environment: EnvironmentSnapshot
    ) -> SessionAggregate:
        raise RuntimeError("storage unavailable")

    def update_aggregate(self, session_id: str, values: dict[str, int]) -> None:
        raise RuntimeError("storage unavailable")


@dataclass
class InMemoryClickRepository(ClickRepository):
    """In-memory append-only click ledger."""

    events: list[ClickEvent] = field(default_factory=list)

    def create_click(
        self,
        session_id: str,
        event_type: ClickType,
        label: str | None,
        target_url: str | None,
        environment: EnvironmentSnapshot,
    ) -> ClickEvent:
        event = ClickEvent(
            id=uuid4(),
            session_id=session_id,
            event_type=event_type,
            label=label,
            target_url=target_url,
            ip_address=environment.ip_address,
            country=environment.country,
            device=environment.device,
            timestamp=datetime.now(tz=UTC),
        )
        self.events.append(event)
        return event

    def list_session_clicks(self, session_id: str) -> list[ClickEvent]:
        return [event for event in self.events if event.session_id == session_id]

    def list_recent_clicks(self, limit: int) -> list[ClickEvent]:
        return list(reversed(self.events))[:limit]


@dataclass
class FailingClickRepository(InMemoryClickRepository):
    """Click repository whose inserts always fail."""

    def create_click(
        self,
        session_id: str,
        event_type: ClickType,
        label: str | None,
        target_url: str | None,
        environment: EnvironmentSnapshot,
    ) -> ClickEvent:
        raise RuntimeError("insert failed")


@dataclass
class InMemoryPrelanderRepository(PrelanderRepository):
    """In-memory prelander configs and offers."""

    configs: dict[str, dict[str, object]] = field(default_factory=dict)
    offers: dict[UUID, OfferRecord] = field(default_factory=dict)
    offer_lookups: int = 0

    def get_active_config(self, page_key: str) -> dict[str, object] | None:
        row = self.configs.get(page_key)
        if row is None or not row.get("is_active", True):
            return None
        return row

    def get_offer(self, offer_id: UUID) -> OfferRecord | None:
        self.offer_lookups += 1
        return self.offers.get(offer_id)


@dataclass
class InMemoryEmailCaptureRepository(EmailCaptureRepository):
    """In-memory email capture store."""

    captures: list[EmailCapture] = field(default_factory=list)

    def create_capture(  # noqa: PLR0913
        self,
        email: str,
        web_result_id: UUID,
        session_id: str | None,
        environment: EnvironmentSnapshot,
        redirected_to: str,
    ) -> None:
        self.captures.insert(
            0,
            EmailCapture(
                id=uuid4(),
                email=email,
                web_result_id=web_result_id,
                offer_title=None,
                offer_name=None,
                session_id=session_id,
                device=environment.device,
                country=environment.country,
                ip_address=environment.ip_address,
                redirected_to=redirected_to,
                captured_at=datetime.now(tz=UTC),
            ),
        )

    def list_captures(self) -> list[EmailCapture]:
        return list(self.captures)


@dataclass
class InMemoryContentRepository(ContentRepository):
    """In-memory landing content, categories and results."""

    landing: LandingContent | None = None
    categories: list[Category] = field(default_factory=list)
    results: list[WebResult] = field(default_factory=list)

    def get_latest_landing(self) -> LandingContent | None:
        return self.landing

    def list_categories(self) -> list[Category]:
        return list(self.categories)

    def list_web_results(self, webresult_page: str) -> list[WebResult]:
        return [r for r in self.results if r.webresult_page == webresult_page]


@dataclass
class InMemoryAdminRepository(AdminRepository):
    """In-memory prelander builder store backed by the prelander repository."""

    prelanders: InMemoryPrelanderRepository

    def create_prelander(self, payload: dict[str, object]) -> dict[str, object]:
        row = {"id": str(uuid4()), **payload}
        self.prelanders.configs[str(payload["page_key"])] = row
        return row

    def link_offer(self, offer_id: UUID, page_key: str) -> None:
        offer = self.prelanders.offers[offer_id]
        self.prelanders.offers[offer_id] = OfferRecord(
            id=offer.id,
            title=offer.title,
            description=offer.description,
            original_link=offer.original_link,
            offer_name=offer.offer_name,
            logo_url=offer.logo_url,
            pre_landing_page_key=page_key,
        )

    def deactivate_prelander(self, config_id: UUID) -> None:
        for row in self.prelanders.configs.values():
            if row.get("id") == str(config_id):
                row["is_active"] = False

    def list_active_prelanders(self) -> list[dict[str, object]]:
        return [
            row for row in self.prelanders.configs.values() if row.get("is_active")
        ]


@dataclass
class FakeGeoLookupClient(GeoLookupClient):
    """Geo client returning fixed payloads, or raising when told to."""

    ip_payload: dict[str, object] = field(
        default_factory=lambda: {"ip": "203.0.113.7"}
    )
    location_payload: dict[str, object] = field(
        default_factory=lambda: {"country_name": "Canada"}
    )
    fail: bool = False
    looked_up: list[str] = field(default_factory=list)

    async def fetch_ip(self) -> dict[str, object]:
        if self.fail:
            raise httpx.ConnectError("offline")
        return self.ip_payload

    async def fetch_location(self, ip: str) -> dict[str, object]:
        self.looked_up.append(ip)
        if self.fail:
            raise httpx.ConnectError("offline")
        return self.location_payload


def make_offer(**overrides: object) -> OfferRecord:
    values: dict[str, object] = {
        "id": uuid4(),
        "title": "OfferX",
        "description": "Meet people nearby",
        "original_link": "https://dest.example/a",
        "offer_name": None,
        "logo_url": None,
        "pre_landing_page_key": None,
    }
    values.update(overrides)
    return OfferRecord(**values)


def make_result(**overrides: object) -> WebResult:
    values: dict[str, object] = {
        "id": uuid4(),
        "webresult_page": "wr=1",
        "title": "Result",
        "description": "Description",
        "original_link": "https://dest.example/r",
        "serial_number": 1,
        "is_sponsored": False,
        "offer_name": None,
        "logo_url": None,
        "access_type": "worldwide",
        "allowed_countries": (),
    }
    values.update(overrides)
    return WebResult(**values)


ENVIRONMENT = EnvironmentSnapshot(
    ip_address="203.0.113.7", country="Canada", device="Desktop", source="landing"
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        heartbeat_interval_seconds=3600,
    )


@pytest.fixture
def analytics_repository() -> InMemoryAnalyticsRepository:
    return InMemoryAnalyticsRepository()


@pytest.fixture
def click_repository() -> InMemoryClickRepository:
    return InMemoryClickRepository()


@pytest.fixture
def prelander_repository() -> InMemoryPrelanderRepository:
    return InMemoryPrelanderRepository()


@pytest.fixture
def content_repository() -> InMemoryContentRepository:
    return InMemoryContentRepository()


@pytest.fixture
def email_repository() -> InMemoryEmailCaptureRepository:
    return InMemoryEmailCaptureRepository()


@pytest.fixture
def geo_client() -> FakeGeoLookupClient:
    return FakeGeoLookupClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    analytics_repository: InMemoryAnalyticsRepository,
    click_repository: InMemoryClickRepository,
    prelander_repository: InMemoryPrelanderRepository,
    content_repository: InMemoryContentRepository,
    email_repository: InMemoryEmailCaptureRepository,
    geo_client: FakeGeoLookupClient,
) -> AppContainer:
    analytics_service = AnalyticsService(
        repository=analytics_repository,
        ledger=ClickLedger(click_repository),
    )
    time_spent = TimeSpentRegistry(
        writer=time_spent_writer(analytics_service),
        interval_seconds=settings.heartbeat_interval_seconds,
        idle_timeout_seconds=settings.idle_timeout_seconds,
        resume=analytics_service.stored_time_spent,
    )
    resolver = PrelanderResolver(prelander_repository)
    admin_service = AdminService(
        admin_repository=InMemoryAdminRepository(prelander_repository),
        analytics_repository=analytics_repository,
        click_repository=click_repository,
        email_repository=email_repository,
    )

    async def close_resources() -> None:
        time_spent.stop_all()

    return AppContainer(
        settings=settings,
        environment_sniffer=EnvironmentSniffer(geo_client),
        analytics_service=analytics_service,
        time_spent=time_spent,
        prelander_service=PrelanderPageService(resolver),
        email_capture_service=EmailCaptureService(email_repository, resolver),
        content_service=ContentService(content_repository),
        admin_service=admin_service,
        close_resources=close_resources,
    )
