"""Session aggregate lifecycle: page views, clicks and time spent."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from prelander_funnel.domain.analytics import (
    ClickType,
    EnvironmentSnapshot,
    SessionAggregate,
)
from prelander_funnel.services.clicks import ClickLedger

_COUNTER_BY_TYPE = {
    ClickType.RELATED_SEARCH: "related_searches",
    ClickType.RESULT: "result_clicks",
}

_logger = logging.getLogger(__name__)


class AnalyticsRepository(Protocol):
    """Persistence interface for session aggregates."""

    def get_aggregate(self, session_id: str) -> SessionAggregate | None:
        """Return the aggregate row for a session, if present."""

    def create_aggregate(
        self, session_id: str, environment: EnvironmentSnapshot
    ) -> SessionAggregate:
        """Create the first aggregate row for a session."""

    def update_aggregate(self, session_id: str, values: dict[str, int]) -> None:
        """Overwrite counter columns on the session's row."""

    def list_recent_aggregates(self, limit: int) -> list[SessionAggregate]:
        """Return the most recent aggregate rows."""


@dataclass
class AnalyticsService:
    """Maintains one aggregate row per session.

    Page views, clicks and time-spent ticks each write a disjoint set of
    columns, so interleaved writes only race on the first page view: two
    near-simultaneous creates collapse into one row (the repository upserts on
    ``session_id``) and the later write wins.
    """

    repository: AnalyticsRepository
    ledger: ClickLedger

    def record_page_view(
        self, session_id: str, environment: EnvironmentSnapshot
    ) -> SessionAggregate | None:
        """Create the session's row or bump its page view count."""
        try:
            existing = self.repository.get_aggregate(session_id)
            if existing is None:
                return self.repository.create_aggregate(session_id, environment)
            self.repository.update_aggregate(
                session_id, {"page_views": existing.page_views + 1}
            )
        except Exception:
            _logger.exception("Failed to record page view for session %s", session_id)
            return None
        return replace(existing, page_views=existing.page_views + 1)

    def record_click(
        self,
        session_id: str,
        click_type: ClickType,
        label: str | None,
        destination_url: str | None,
        environment: EnvironmentSnapshot,
    ) -> SessionAggregate | None:
        """Log the click, then refresh the session counters from the ledger."""
        self.ledger.record_click(
            session_id, click_type, label, destination_url, environment
        )
        try:
            unique_clicks = self.ledger.count_unique_destinations(session_id)
            existing = self.repository.get_aggregate(session_id)
            if existing is None:
                _logger.info("Click for session %s before any page view", session_id)
                return None
            counter = _COUNTER_BY_TYPE[click_type]
            values = {
                "clicks": existing.clicks + 1,
                "unique_clicks": unique_clicks,
                counter: getattr(existing, counter) + 1,
            }
            self.repository.update_aggregate(session_id, values)
        except Exception:
            _logger.exception("Failed to update click counters for %s", session_id)
            return None
        return replace(existing, **values)

    def record_time_spent(self, session_id: str, seconds: int) -> int | None:
        """Store elapsed seconds, never lowering the stored value."""
        try:
            existing = self.repository.get_aggregate(session_id)
            if existing is None:
                return None
            value = max(existing.time_spent, int(seconds))
            if value != existing.time_spent:
                self.repository.update_aggregate(session_id, {"time_spent": value})
        except Exception:
            _logger.exception("Failed to record time spent for %s", session_id)
            return None
        return value

    def get_aggregate(self, session_id: str) -> SessionAggregate | None:
        """Return the current aggregate for a session."""
        return self.repository.get_aggregate(session_id)

    def stored_time_spent(self, session_id: str) -> int | None:
        """Return the stored seconds for a session, or None without a row."""
        try:
            existing = self.repository.get_aggregate(session_id)
        except Exception:
            _logger.exception("Failed to read time spent for %s", session_id)
            return None
        return existing.time_spent if existing else None
