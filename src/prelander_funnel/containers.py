"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from prelander_funnel.adapters.geo_client import HttpxGeoLookupClient
from prelander_funnel.adapters.supabase_admin_repository import SupabaseAdminRepository
from prelander_funnel.adapters.supabase_analytics_repository import (
    SupabaseAnalyticsRepository,
)
from prelander_funnel.adapters.supabase_click_repository import SupabaseClickRepository
from prelander_funnel.adapters.supabase_content_repository import (
    SupabaseContentRepository,
)
from prelander_funnel.adapters.supabase_email_repository import (
    SupabaseEmailCaptureRepository,
)
from prelander_funnel.adapters.supabase_prelander_repository import (
    SupabasePrelanderRepository,
)
from prelander_funnel.config import Settings
from prelander_funnel.services.admin import AdminService
from prelander_funnel.services.analytics import AnalyticsService
from prelander_funnel.services.clicks import ClickLedger
from prelander_funnel.services.content import ContentService
from prelander_funnel.services.emails import EmailCaptureService
from prelander_funnel.services.environment import EnvironmentSniffer
from prelander_funnel.services.prelander import PrelanderPageService, PrelanderResolver
from prelander_funnel.services.time_spent import TimeSpentRegistry


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    environment_sniffer: EnvironmentSniffer
    analytics_service: AnalyticsService
    time_spent: TimeSpentRegistry
    prelander_service: PrelanderPageService
    email_capture_service: EmailCaptureService
    content_service: ContentService
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def time_spent_writer(
    analytics_service: AnalyticsService,
) -> Callable[[str, int], Awaitable[int | None]]:
    """Adapt the analytics service to the tracker's async writer."""

    async def write(session_id: str, seconds: int) -> int | None:
        return analytics_service.record_time_spent(session_id, seconds)

    return write


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    analytics_repository = SupabaseAnalyticsRepository(supabase_client)
    click_repository = SupabaseClickRepository(supabase_client)
    prelander_repository = SupabasePrelanderRepository(supabase_client)
    email_repository = SupabaseEmailCaptureRepository(supabase_client)
    content_repository = SupabaseContentRepository(supabase_client)
    admin_repository = SupabaseAdminRepository(supabase_client)
    geo_client = HttpxGeoLookupClient.create(
        ip_lookup_url=resolved_settings.ip_lookup_url,
        geo_base_url=resolved_settings.geo_lookup_base_url,
    )
    analytics_service = AnalyticsService(
        repository=analytics_repository,
        ledger=ClickLedger(click_repository),
    )
    time_spent = TimeSpentRegistry(
        writer=time_spent_writer(analytics_service),
        interval_seconds=resolved_settings.heartbeat_interval_seconds,
        idle_timeout_seconds=resolved_settings.idle_timeout_seconds,
        resume=analytics_service.stored_time_spent,
    )
    resolver = PrelanderResolver(prelander_repository)
    admin_service = AdminService(
        admin_repository=admin_repository,
        analytics_repository=analytics_repository,
        click_repository=click_repository,
        email_repository=email_repository,
    )

    async def close_resources() -> None:
        time_spent.stop_all()
        await geo_client.close()

    return AppContainer(
        settings=resolved_settings,
        environment_sniffer=EnvironmentSniffer(geo_client),
        analytics_service=analytics_service,
        time_spent=time_spent,
        prelander_service=PrelanderPageService(resolver),
        email_capture_service=EmailCaptureService(email_repository, resolver),
        content_service=ContentService(content_repository),
        admin_service=admin_service,
        close_resources=close_resources,
    )
