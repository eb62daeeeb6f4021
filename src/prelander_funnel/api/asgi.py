"""ASGI entrypoint for the prelander funnel API."""

from prelander_funnel.api.app import create_app
from prelander_funnel.containers import build_container

app = create_app(build_container())
