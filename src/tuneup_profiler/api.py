"""FastAPI application that profiles its own requests."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Query, status

from .config import config
from .contracts import validate_export
from .demo_utils import run_synthetic_request
from .middleware import TuneupMiddleware
from .schemas import APIError, TraceExport, export_trace
from .steps import TuneupError
from .store import TraceStore
from .timing import count_steps

logger = logging.getLogger("tuneup_profiler.api")

app = FastAPI(
    title="Tuneup Profiler API",
    version="0.1.0",
    description="Demo service whose requests are recorded as model/view/controller traces.",
)

trace_store = TraceStore(config.max_traces)
app.add_middleware(TuneupMiddleware, store=trace_store)


@app.get("/health")
def health() -> dict[str, str]:
    """Lightweight health probe for orchestration/monitoring."""

    return {"status": "ok"}


@app.get("/v1/demo")
def demo(
    items: int = Query(3, ge=1, le=100, description="Number of synthetic records to load and render."),
    delay_ms: float = Query(0.0, ge=0.0, le=50.0, description="Sleep added to every leaf step."),
) -> dict[str, Any]:
    rows = run_synthetic_request(items, delay_ms=delay_ms)
    return {"items": len(rows), "rows": rows}


@app.get("/v1/traces")
def list_traces() -> list[dict[str, Any]]:
    """Summaries of the traces currently held in memory, oldest first."""

    return [
        {"route": route, "total_ms": root.duration_ms, "steps": count_steps(root)}
        for route, root in trace_store.recent()
    ]


@app.get("/v1/traces/last", response_model=TraceExport)
def last_trace() -> TraceExport:
    entry = trace_store.last()
    if entry is None:
        raise _api_error(
            status.HTTP_404_NOT_FOUND,
            APIError(error_type="no_trace", message="No request has been recorded yet."),
        )

    route, root = entry
    try:
        exported = export_trace(root, config.default_layer)
    except TuneupError as exc:
        logger.error("route=%s export failed: %s", route, exc)
        raise _api_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            APIError(error_type="calculation_error", message=str(exc), details={"route": route}),
        ) from exc

    if config.validate_exports:
        try:
            validate_export(exported.model_dump(mode="json"))
        except ValueError as exc:
            raise _api_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                APIError(error_type="export_validation_error", message=str(exc), details={"route": route}),
            ) from exc
    return exported


def _api_error(status_code: int, error: APIError) -> HTTPException:
    return HTTPException(status_code=status_code, detail=error.model_dump())
