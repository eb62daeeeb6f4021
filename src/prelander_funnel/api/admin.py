"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from prelander_funnel.api.models import PrelanderConfigPayload  # noqa: TC001

if TYPE_CHECKING:
    from prelander_funnel.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/analytics", dependencies=[Depends(require_admin)])
async def analytics_overview(request: Request) -> dict[str, object]:
    """Return totals and per-session counters."""
    container: AppContainer = request.app.state.container
    return container.admin_service.analytics_overview(
        container.settings.analytics_recent_limit
    )


@router.get("/analytics/{session_id}", dependencies=[Depends(require_admin)])
async def session_breakdown(session_id: str, request: Request) -> dict[str, object]:
    """Return a session's click breakdown."""
    container: AppContainer = request.app.state.container
    return container.admin_service.session_breakdown(session_id)


@router.get("/clicks", dependencies=[Depends(require_admin)])
async def recent_clicks(request: Request) -> dict[str, object]:
    """Return the latest click events."""
    container: AppContainer = request.app.state.container
    return {
        "clicks": container.admin_service.recent_clicks(
            container.settings.analytics_recent_limit
        )
    }


@router.get("/emails", dependencies=[Depends(require_admin)])
async def list_emails(request: Request, search: str | None = None) -> dict[str, object]:
    """Return captured emails."""
    container: AppContainer = request.app.state.container
    captures = container.admin_service.list_email_captures(search)
    return {"emails": [asdict(capture) for capture in captures]}


@router.get(
    "/emails.csv",
    dependencies=[Depends(require_admin)],
    response_class=PlainTextResponse,
)
async def export_emails(request: Request, search: str | None = None) -> str:
    """Export captured emails as CSV."""
    container: AppContainer = request.app.state.container
    return container.admin_service.export_email_captures_csv(search)


@router.get("/prelanders", dependencies=[Depends(require_admin)])
async def list_prelanders(request: Request) -> dict[str, object]:
    """Return active prelander configs."""
    container: AppContainer = request.app.state.container
    return {"prelanders": container.admin_service.list_prelanders()}


@router.post(
    "/offers/{offer_id}/prelander",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_201_CREATED,
)
async def save_prelander(
    offer_id: UUID, payload: PrelanderConfigPayload, request: Request
) -> dict[str, object]:
    """Create a prelander config and link it to an offer."""
    container: AppContainer = request.app.state.container
    row = container.admin_service.save_prelander(
        offer_id, payload.model_dump(exclude_none=True)
    )
    return {"prelander": row}


@router.delete(
    "/prelanders/{config_id}",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def deactivate_prelander(config_id: UUID, request: Request) -> None:
    """Soft-delete a prelander config."""
    container: AppContainer = request.app.state.container
    container.admin_service.deactivate_prelander(config_id)
