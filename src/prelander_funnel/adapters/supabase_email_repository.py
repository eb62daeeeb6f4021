"""Supabase repository for email captures."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from prelander_funnel.domain.analytics import EnvironmentSnapshot
from prelander_funnel.domain.content import EmailCapture
from prelander_funnel.services.emails import EmailCaptureRepository


@dataclass
class SupabaseEmailCaptureRepository(EmailCaptureRepository):
    """Supabase implementation for the ``email_captures`` table."""

    client: Client

    def create_capture(  # noqa: PLR0913
        self,
        email: str,
        web_result_id: UUID,
        session_id: str | None,
        environment: EnvironmentSnapshot,
        redirected_to: str,
    ) -> None:
        """Insert a captured email."""
        self.client.table("email_captures").insert(
            {
                "email": email,
                "web_result_id": str(web_result_id),
                "session_id": session_id,
                "device": environment.device,
                "country": environment.country,
                "ip_address": environment.ip_address,
                "redirected_to": redirected_to,
            }
        ).execute()

    def list_captures(self) -> list[EmailCapture]:
        """Return captured emails joined with their offer, newest first."""
        response = (
            self.client.table("email_captures")
            .select("*, web_results(title, offer_name)")
            .order("captured_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> EmailCapture:
    offer = row.get("web_results")
    offer = offer if isinstance(offer, dict) else {}
    captured_raw = row.get("captured_at")
    web_result_id = row.get("web_result_id")
    return EmailCapture(
        id=UUID(str(row["id"])),
        email=str(row["email"]),
        web_result_id=UUID(str(web_result_id)) if web_result_id else None,
        offer_title=offer.get("title"),
        offer_name=offer.get("offer_name"),
        session_id=row.get("session_id"),
        device=row.get("device"),
        country=row.get("country"),
        ip_address=row.get("ip_address"),
        redirected_to=row.get("redirected_to"),
        captured_at=datetime.fromisoformat(captured_raw)
        if isinstance(captured_raw, str) and captured_raw
        else None,
    )
