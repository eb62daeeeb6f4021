"""Supabase-backed click ledger."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from prelander_funnel.domain.analytics import ClickEvent, ClickType, EnvironmentSnapshot
from prelander_funnel.services.clicks import ClickRepository

_COLUMNS = (
    "id, session_id, event_type, search_term, target_url, "
    "ip_address, country, device, timestamp"
)


@dataclass
class SupabaseClickRepository(ClickRepository):
    """Supabase implementation for the ``click_events`` table."""

    client: Client

    def create_click(
        self,
        session_id: str,
        event_type: ClickType,
        label: str | None,
        target_url: str | None,
        environment: EnvironmentSnapshot,
    ) -> ClickEvent:
        """Insert a click event row and return it."""
        response = (
            self.client.table("click_events")
            .insert(
                {
                    "session_id": session_id,
                    "event_type": event_type.value,
                    "search_term": label,
                    "target_url": target_url,
                    "ip_address": environment.ip_address,
                    "country": environment.country,
                    "device": environment.device,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record click event")
        return _parse_row(response.data[0])

    def list_session_clicks(self, session_id: str) -> list[ClickEvent]:
        """Return a session's clicks in the order they happened."""
        response = (
            self.client.table("click_events")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .order("timestamp", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def list_recent_clicks(self, limit: int) -> list[ClickEvent]:
        """Return the latest click events across sessions."""
        response = (
            self.client.table("click_events")
            .select(_COLUMNS)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> ClickEvent:
    timestamp_raw = row.get("timestamp")
    return ClickEvent(
        id=UUID(str(row["id"])),
        session_id=str(row["session_id"]),
        event_type=ClickType(row["event_type"]),
        label=row.get("search_term"),
        target_url=row.get("target_url"),
        ip_address=row.get("ip_address"),
        country=row.get("country"),
        device=row.get("device"),
        timestamp=datetime.fromisoformat(timestamp_raw)
        if isinstance(timestamp_raw, str) and timestamp_raw
        else None,
    )
