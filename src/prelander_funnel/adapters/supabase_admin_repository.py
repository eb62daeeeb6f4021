"""Supabase repository for prelander builder writes."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from prelander_funnel.services.admin import AdminRepository


@dataclass
class SupabaseAdminRepository(AdminRepository):
    """Supabase-backed admin repository."""

    client: Client

    def create_prelander(self, payload: dict[str, object]) -> dict[str, object]:
        """Insert a prelander config row and return it."""
        response = self.client.table("pre_landing_pages").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create prelander config")
        return response.data[0]

    def link_offer(self, offer_id: UUID, page_key: str) -> None:
        """Point an offer at a prelander page key."""
        self.client.table("web_results").update(
            {
                "pre_landing_page_key": page_key,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("id", str(offer_id)).execute()

    def deactivate_prelander(self, config_id: UUID) -> None:
        """Soft-delete a prelander config."""
        self.client.table("pre_landing_pages").update({"is_active": False}).eq(
            "id", str(config_id)
        ).execute()

    def list_active_prelanders(self) -> list[dict[str, object]]:
        """Return active prelander configs, newest first."""
        response = (
            self.client.table("pre_landing_pages")
            .select("*")
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute()
        )
        return list(response.data or [])
