"""ASGI middleware that records one trace per HTTP request."""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from . import config as config_module
from .steps import RootStep
from .store import TraceStore
from .timing import count_steps, summarize_trace

logger = logging.getLogger("tuneup_profiler.middleware")

TOTAL_HEADER = "X-Tuneup-Total-Ms"


class TuneupMiddleware(BaseHTTPMiddleware):
    """Wraps every request in its own trace and keeps the result in a store.

    Each request runs in its own task, so the recording stack bound by
    ``RootStep.recording`` is never shared between concurrent requests.
    """

    def __init__(self, app: ASGIApp, *, store: TraceStore) -> None:
        super().__init__(app)
        self._store = store

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        cfg = config_module.config
        if not cfg.enabled:
            return await call_next(request)

        route = f"{request.method} {request.url.path}"
        root = RootStep()
        with root.recording():
            request.state.tuneup_root = root
            response = await call_next(request)

        self._store.add(route, root)
        summary = summarize_trace(root, cfg.default_layer)
        response.headers[TOTAL_HEADER] = f"{root.duration_ms:.2f}"
        logger.info(
            "route=%s status=%d steps=%d model_ms=%.2f view_ms=%.2f controller_ms=%.2f total_ms=%.2f",
            route,
            response.status_code,
            count_steps(root),
            summary.model_ms,
            summary.view_ms,
            summary.controller_ms,
            root.duration_ms,
        )
        return response
