"""Append-only click ledger."""

import logging
from dataclasses import dataclass
from typing import Protocol

from prelander_funnel.domain.analytics import ClickEvent, ClickType, EnvironmentSnapshot

_logger = logging.getLogger(__name__)


class ClickRepository(Protocol):
    """Persistence interface for click events."""

    def create_click(
        self,
        session_id: str,
        event_type: ClickType,
        label: str | None,
        target_url: str | None,
        environment: EnvironmentSnapshot,
    ) -> ClickEvent:
        """Insert a click event and return it."""

    def list_session_clicks(self, session_id: str) -> list[ClickEvent]:
        """Return every click recorded for a session."""

    def list_recent_clicks(self, limit: int) -> list[ClickEvent]:
        """Return the most recent click events."""


@dataclass
class ClickLedger:
    """Records clicks and derives per-session figures from them."""

    repository: ClickRepository

    def record_click(
        self,
        session_id: str,
        click_type: ClickType,
        label: str | None,
        destination_url: str | None,
        environment: EnvironmentSnapshot,
    ) -> ClickEvent | None:
        """Append a click; storage failures are logged and dropped."""
        try:
            return self.repository.create_click(
                session_id=session_id,
                event_type=click_type,
                label=label or None,
                target_url=destination_url or None,
                environment=environment,
            )
        except Exception:
            _logger.exception(
                "Failed to record %s click for session %s", click_type, session_id
            )
            return None

    def list_session_clicks(self, session_id: str) -> list[ClickEvent]:
        """Return the ledger slice for a session."""
        return self.repository.list_session_clicks(session_id)

    def count_unique_destinations(self, session_id: str) -> int:
        """Count distinct non-empty destination URLs clicked in a session."""
        return unique_destinations(self.list_session_clicks(session_id))


def unique_destinations(events: list[ClickEvent]) -> int:
    """Return the number of distinct non-empty target URLs."""
    return len({event.target_url for event in events if event.target_url})
