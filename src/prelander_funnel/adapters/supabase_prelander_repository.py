"""Supabase repository for prelander configs and their offers."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from prelander_funnel.domain.prelander import OfferRecord
from prelander_funnel.services.prelander import PrelanderRepository


@dataclass
class SupabasePrelanderRepository(PrelanderRepository):
    """Reads ``pre_landing_pages`` and ``web_results``."""

    client: Client

    def get_active_config(self, page_key: str) -> dict[str, object] | None:
        """Return the active config row for a page key, if present."""
        response = (
            self.client.table("pre_landing_pages")
            .select("*")
            .eq("page_key", page_key)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]

    def get_offer(self, offer_id: UUID) -> OfferRecord | None:
        """Return a web result by id, if present."""
        response = (
            self.client.table("web_results")
            .select(
                "id, title, description, original_link, offer_name, logo_url, "
                "pre_landing_page_key"
            )
            .eq("id", str(offer_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return OfferRecord(
            id=UUID(str(row["id"])),
            title=str(row.get("title") or ""),
            description=str(row.get("description") or ""),
            original_link=str(row.get("original_link") or ""),
            offer_name=row.get("offer_name") or None,
            logo_url=row.get("logo_url") or None,
            pre_landing_page_key=row.get("pre_landing_page_key") or None,
        )
