"""Supabase repository for landing content, categories and web results."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from prelander_funnel.domain.content import Category, LandingContent, WebResult
from prelander_funnel.services.content import ContentRepository


@dataclass
class SupabaseContentRepository(ContentRepository):
    """Supabase implementation for public page content."""

    client: Client

    def get_latest_landing(self) -> LandingContent | None:
        """Return the most recently created landing copy."""
        response = (
            self.client.table("landing_page")
            .select("title, description")
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return LandingContent(
            title=str(row.get("title") or ""),
            description=str(row.get("description") or ""),
        )

    def list_categories(self) -> list[Category]:
        """Return categories ordered by serial number."""
        response = (
            self.client.table("categories")
            .select("id, title, webresult_page, serial_number")
            .order("serial_number", desc=False)
            .execute()
        )
        return [
            Category(
                id=UUID(str(row["id"])),
                title=str(row["title"]),
                webresult_page=str(row["webresult_page"]),
                serial_number=int(row.get("serial_number") or 0),
            )
            for row in response.data or []
        ]

    def list_web_results(self, webresult_page: str) -> list[WebResult]:
        """Return web results for a page key ordered by serial number."""
        response = (
            self.client.table("web_results")
            .select("*")
            .eq("webresult_page", webresult_page)
            .order("serial_number", desc=False)
            .execute()
        )
        return [_parse_result(row) for row in response.data or []]


def _parse_result(row: dict[str, object]) -> WebResult:
    countries = row.get("allowed_countries")
    return WebResult(
        id=UUID(str(row["id"])),
        webresult_page=str(row["webresult_page"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        original_link=str(row.get("original_link") or ""),
        serial_number=int(row.get("serial_number") or 0),
        is_sponsored=bool(row.get("is_sponsored")),
        offer_name=row.get("offer_name") or None,
        logo_url=row.get("logo_url") or None,
        access_type=str(row.get("access_type") or "worldwide"),
        allowed_countries=tuple(str(item) for item in countries)
        if isinstance(countries, list)
        else (),
    )
