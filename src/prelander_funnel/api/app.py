"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prelander_funnel.api.admin import router as admin_router
from prelander_funnel.api.models import (
    ClickRequest,
    EmailCaptureRequest,
    PageViewRequest,
    TimeSpentRequest,
)
from prelander_funnel.app_logging import configure_logging
from prelander_funnel.config import parse_allowed_origins
from prelander_funnel.containers import AppContainer
from prelander_funnel.domain.analytics import UNKNOWN_IP, SessionAggregate
from prelander_funnel.domain.content import WebResult
from prelander_funnel.domain.errors import ConfigNotFoundError, InvalidEmailError
from prelander_funnel.domain.prelander import PrelanderPage
from prelander_funnel.services.identity import SESSION_STORAGE_KEY, SessionIdProvider

LANDING_PATH = "/landing"


def create_app(container: AppContainer) -> FastAPI:  # noqa: C901
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    origins = parse_allowed_origins(container.settings.allowed_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/track/pageview")
    async def track_pageview(
        payload: PageViewRequest, request: Request, response: Response
    ) -> dict[str, object]:
        """Record a page view and start the session's time tracker."""
        state_container: AppContainer = request.app.state.container
        session_id = _resolve_session_id(request, response, payload.session_id)
        environment = await state_container.environment_sniffer.snapshot(
            request.headers.get("user-agent"),
            source=payload.source,
            client_ip=_client_ip(request),
        )
        aggregate = state_container.analytics_service.record_page_view(
            session_id, environment
        )
        state_container.time_spent.start(session_id)
        return {"session_id": session_id, "aggregate": _serialize_aggregate(aggregate)}

    @app.post("/track/click")
    async def track_click(
        payload: ClickRequest, request: Request, response: Response
    ) -> dict[str, object]:
        """Record a click; the caller navigates regardless of the outcome."""
        state_container: AppContainer = request.app.state.container
        session_id = _resolve_session_id(request, response, payload.session_id)
        environment = await state_container.environment_sniffer.snapshot(
            request.headers.get("user-agent"),
            client_ip=_client_ip(request),
        )
        aggregate = state_container.analytics_service.record_click(
            session_id,
            payload.type,
            payload.label,
            payload.destination_url,
            environment,
        )
        return {
            "session_id": session_id,
            "redirect_to": payload.destination_url,
            "aggregate": _serialize_aggregate(aggregate),
        }

    @app.post("/track/time")
    async def track_time(
        payload: TimeSpentRequest, request: Request, response: Response
    ) -> dict[str, object]:
        """Forward a page lifecycle signal to the session's tracker."""
        state_container: AppContainer = request.app.state.container
        session_id = _resolve_session_id(request, response, payload.session_id)
        written = await state_container.time_spent.handle(session_id, payload.event)
        return {"session_id": session_id, "time_spent": written}

    @app.get("/track/session")
    async def current_session(request: Request, response: Response) -> dict[str, object]:
        """Return the caller's session counters."""
        state_container: AppContainer = request.app.state.container
        session_id = _resolve_session_id(request, response, None)
        aggregate = state_container.analytics_service.get_aggregate(session_id)
        if aggregate is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
            )
        return {"session_id": session_id, "aggregate": _serialize_aggregate(aggregate)}

    @app.get("/landing")
    async def landing(request: Request) -> dict[str, object]:
        """Return landing copy and related searches."""
        state_container: AppContainer = request.app.state.container
        content = state_container.content_service.get_landing()
        categories = state_container.content_service.list_categories()
        return {
            "title": content.title,
            "description": content.description,
            "categories": [asdict(category) for category in categories],
        }

    @app.get("/webresult/{page}")
    async def web_results(page: str, request: Request) -> dict[str, object]:
        """Return sponsored and regular results visible to the caller."""
        state_container: AppContainer = request.app.state.container
        country = await state_container.environment_sniffer.get_country(
            _client_ip(request)
        )
        results = state_container.content_service.list_results(page, country)
        return {
            "page": page,
            "sponsored": [_serialize_result(item) for item in results.sponsored],
            "regular": [_serialize_result(item) for item in results.regular],
        }

    @app.get("/prelander", response_model=None)
    async def prelander(
        request: Request, id: str | None = None, key: str | None = None
    ) -> dict[str, object] | JSONResponse:
        """Return the prelander layout for an offer id or page key."""
        state_container: AppContainer = request.app.state.container
        try:
            page = state_container.prelander_service.render(key or id)
        except ConfigNotFoundError:
            logger.info("Prelander not found for id=%s key=%s", id, key)
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"detail": "Offer not found", "redirect_to": LANDING_PATH},
            )
        return _serialize_page(page)

    @app.post("/prelander/{offer_id}/email")
    async def capture_email(
        offer_id: UUID,
        payload: EmailCaptureRequest,
        request: Request,
        response: Response,
    ) -> dict[str, object]:
        """Store a captured email and return the offer destination."""
        state_container: AppContainer = request.app.state.container
        session_id = _resolve_session_id(request, response, payload.session_id)
        environment = await state_container.environment_sniffer.snapshot(
            request.headers.get("user-agent"),
            client_ip=_client_ip(request),
        )
        try:
            redirect_to = state_container.email_capture_service.capture(
                offer_id, payload.email, session_id, environment
            )
        except InvalidEmailError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except ConfigNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Offer not found"
            ) from exc
        return {"session_id": session_id, "redirect_to": redirect_to}

    return app


def _resolve_session_id(
    request: Request, response: Response, body_session_id: str | None
) -> str:
    """Read the tab's session id from the request, minting one if absent."""
    storage: dict[str, str] = {}
    candidate = (
        body_session_id
        or request.headers.get("x-session-id")
        or request.cookies.get(SESSION_STORAGE_KEY)
    )
    if candidate:
        storage[SESSION_STORAGE_KEY] = candidate
    session_id = SessionIdProvider(storage).get_session_id()
    response.set_cookie(SESSION_STORAGE_KEY, session_id, samesite="lax")
    return session_id


def _client_ip(request: Request) -> str:
    """Return the caller's IP, honoring a proxy's X-Forwarded-For.

    Without either source the visitor is ``unknown``; a server-side public IP
    lookup would report the server's own address.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def _serialize_aggregate(aggregate: SessionAggregate | None) -> dict[str, object] | None:
    if aggregate is None:
        return None
    return {
        "page_views": aggregate.page_views,
        "clicks": aggregate.clicks,
        "unique_clicks": aggregate.unique_clicks,
        "related_searches": aggregate.related_searches,
        "result_clicks": aggregate.result_clicks,
        "time_spent": aggregate.time_spent,
    }


def _serialize_result(result: WebResult) -> dict[str, object]:
    return {
        "id": str(result.id),
        "title": result.title,
        "description": result.description,
        "offer_name": result.offer_name,
        "logo_url": result.logo_url,
        "original_link": result.original_link,
        "prelander_url": f"/prelander?id={result.id}",
    }


def _serialize_page(page: PrelanderPage) -> dict[str, object]:
    config = asdict(page.config)
    config["background_mode"] = page.config.background_mode
    return {
        "offer_id": str(page.offer_id) if page.offer_id else None,
        "destination_url": page.destination_url,
        "is_default": page.is_default,
        "config": config,
    }
