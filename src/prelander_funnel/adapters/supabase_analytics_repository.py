"""Supabase-backed session aggregate repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from prelander_funnel.domain.analytics import (
    UNKNOWN_IP,
    EnvironmentSnapshot,
    SessionAggregate,
)
from prelander_funnel.services.analytics import AnalyticsRepository

_COLUMNS = (
    "id, session_id, page_views, clicks, unique_clicks, related_searches, "
    "result_clicks, time_spent, ip_address, country, device, source, timestamp"
)


@dataclass
class SupabaseAnalyticsRepository(AnalyticsRepository):
    """Supabase implementation for the ``analytics`` table."""

    client: Client

    def get_aggregate(self, session_id: str) -> SessionAggregate | None:
        """Return the aggregate row for a session, if present."""
        response = (
            self.client.table("analytics")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def create_aggregate(
        self, session_id: str, environment: EnvironmentSnapshot
    ) -> SessionAggregate:
        """Upsert the first row for a session keyed on ``session_id``."""
        response = (
            self.client.table("analytics")
            .upsert(
                {
                    "session_id": session_id,
                    "ip_address": environment.ip_address,
                    "country": environment.country,
                    "device": environment.device,
                    "source": environment.source,
                    "page_views": 1,
                    "clicks": 0,
                    "unique_clicks": 0,
                    "related_searches": 0,
                    "result_clicks": 0,
                    "time_spent": 0,
                },
                on_conflict="session_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create analytics row")
        return _parse_row(response.data[0])

    def update_aggregate(self, session_id: str, values: dict[str, int]) -> None:
        """Overwrite counter columns for a session."""
        self.client.table("analytics").update(values).eq(
            "session_id", session_id
        ).execute()

    def list_recent_aggregates(self, limit: int) -> list[SessionAggregate]:
        """Return the most recent sessions."""
        response = (
            self.client.table("analytics")
            .select(_COLUMNS)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> SessionAggregate:
    timestamp_raw = row.get("timestamp")
    return SessionAggregate(
        id=UUID(str(row["id"])),
        session_id=str(row["session_id"]),
        page_views=int(row.get("page_views") or 0),
        clicks=int(row.get("clicks") or 0),
        unique_clicks=int(row.get("unique_clicks") or 0),
        related_searches=int(row.get("related_searches") or 0),
        result_clicks=int(row.get("result_clicks") or 0),
        time_spent=int(row.get("time_spent") or 0),
        ip_address=str(row.get("ip_address") or UNKNOWN_IP),
        country=row.get("country"),
        device=row.get("device"),
        source=row.get("source"),
        timestamp=datetime.fromisoformat(timestamp_raw)
        if isinstance(timestamp_raw, str) and timestamp_raw
        else None,
    )
