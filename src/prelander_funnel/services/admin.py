"""Admin service for reporting and the prelander builder."""

import csv
import io
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from prelander_funnel.domain.analytics import ClickEvent, ClickType, SessionAggregate
from prelander_funnel.domain.content import EmailCapture
from prelander_funnel.services.analytics import AnalyticsRepository
from prelander_funnel.services.clicks import ClickRepository, unique_destinations
from prelander_funnel.services.emails import EmailCaptureRepository

_CSV_HEADERS = ["Email", "Offer", "Date Captured", "Device", "Country", "Redirected To"]


class AdminRepository(Protocol):
    """Persistence interface for prelander builder writes."""

    def create_prelander(self, payload: dict[str, object]) -> dict[str, object]:
        """Insert a prelander config row and return it."""

    def link_offer(self, offer_id: UUID, page_key: str) -> None:
        """Point an offer at a prelander page key."""

    def deactivate_prelander(self, config_id: UUID) -> None:
        """Soft-delete a prelander config."""

    def list_active_prelanders(self) -> list[dict[str, object]]:
        """Return active prelander configs, newest first."""


@dataclass
class AdminService:
    """Service for admin dashboards."""

    admin_repository: AdminRepository
    analytics_repository: AnalyticsRepository
    click_repository: ClickRepository
    email_repository: EmailCaptureRepository
    now_ms: Callable[[], int] = lambda: time.time_ns() // 1_000_000

    def analytics_overview(self, limit: int = 200) -> dict[str, object]:
        """Return totals across recent sessions plus the rows themselves."""
        rows = self.analytics_repository.list_recent_aggregates(limit)
        return {
            "totals": {
                "page_views": sum(row.page_views for row in rows),
                "clicks": sum(row.clicks for row in rows),
                "unique_clicks": sum(row.unique_clicks for row in rows),
                "related_searches": sum(row.related_searches for row in rows),
                "result_clicks": sum(row.result_clicks for row in rows),
            },
            "sessions": [_serialize_aggregate(row) for row in rows],
        }

    def session_breakdown(self, session_id: str) -> dict[str, object]:
        """Group a session's clicks by search term and by result URL."""
        events = self.click_repository.list_session_clicks(session_id)
        searches = [e for e in events if e.event_type is ClickType.RELATED_SEARCH]
        results = [e for e in events if e.event_type is ClickType.RESULT]
        return {
            "session_id": session_id,
            "related_searches": _breakdown(searches, key=lambda e: e.label),
            "results": _breakdown(results, key=lambda e: e.target_url),
        }

    def recent_clicks(self, limit: int = 200) -> list[dict[str, object]]:
        """Return the latest click events across sessions."""
        return [
            _serialize_click(event)
            for event in self.click_repository.list_recent_clicks(limit)
        ]

    def list_email_captures(self, search: str | None = None) -> list[EmailCapture]:
        """Return captured emails, optionally filtered by a search term."""
        captures = self.email_repository.list_captures()
        if not search:
            return captures
        needle = search.lower()
        return [
            capture
            for capture in captures
            if needle in capture.email.lower()
            or needle in (capture.offer_title or "").lower()
            or needle in (capture.offer_name or "").lower()
        ]

    def export_email_captures_csv(self, search: str | None = None) -> str:
        """Render captured emails as CSV."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        writer.writerow(_CSV_HEADERS)
        for capture in self.list_email_captures(search):
            writer.writerow(
                [
                    capture.email,
                    capture.offer_name or capture.offer_title or "N/A",
                    capture.captured_at.isoformat() if capture.captured_at else "N/A",
                    capture.device or "N/A",
                    capture.country or "N/A",
                    capture.redirected_to or "N/A",
                ]
            )
        return buffer.getvalue()

    def save_prelander(
        self, offer_id: UUID, payload: dict[str, object]
    ) -> dict[str, object]:
        """Create a prelander config and link it to the offer."""
        page_key = f"prelander_{self.now_ms()}"
        row = self.admin_repository.create_prelander(
            {**payload, "page_key": page_key, "is_active": True}
        )
        self.admin_repository.link_offer(offer_id, page_key)
        return row

    def deactivate_prelander(self, config_id: UUID) -> None:
        """Hide a prelander config from visitors."""
        self.admin_repository.deactivate_prelander(config_id)

    def list_prelanders(self) -> list[dict[str, object]]:
        """Return active prelander configs."""
        return self.admin_repository.list_active_prelanders()


def _breakdown(
    events: list[ClickEvent], key: Callable[[ClickEvent], str | None]
) -> list[dict[str, object]]:
    groups: dict[str, list[ClickEvent]] = {}
    for event in events:
        groups.setdefault(key(event) or "Unknown", []).append(event)
    return [
        {"key": name, "total": len(group), "unique": unique_destinations(group)}
        for name, group in groups.items()
    ]


def _serialize_click(event: ClickEvent) -> dict[str, object]:
    return {
        "session_id": event.session_id,
        "event_type": event.event_type.value,
        "label": event.label,
        "target_url": event.target_url,
        "country": event.country,
        "device": event.device,
        "timestamp": event.timestamp.isoformat() if event.timestamp else None,
    }


def _serialize_aggregate(row: SessionAggregate) -> dict[str, object]:
    return {
        "session_id": row.session_id,
        "page_views": row.page_views,
        "clicks": row.clicks,
        "unique_clicks": row.unique_clicks,
        "related_searches": row.related_searches,
        "result_clicks": row.result_clicks,
        "time_spent": row.time_spent,
        "ip_address": row.ip_address,
        "country": row.country,
        "device": row.device,
        "source": row.source,
        "timestamp": row.timestamp.isoformat() if row.timestamp else None,
    }
