from __future__ import annotations

import asyncio
import time
from collections.abc import Iterator
from dataclasses import replace

import httpx
import pytest
from fastapi.testclient import TestClient

from tuneup_profiler import api as api_module
from tuneup_profiler import config as config_module
from tuneup_profiler.api import app, trace_store
from tuneup_profiler.middleware import TOTAL_HEADER
from tuneup_profiler.steps import RootStep, Step

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_api_state() -> Iterator[None]:
    original_cfg = api_module.config
    trace_store.clear()
    yield
    api_module.config = original_cfg
    config_module.config = original_cfg
    trace_store.clear()


def _override_api_config(**overrides):
    new_cfg = replace(api_module.config, **overrides)
    api_module.config = new_cfg
    config_module.config = new_cfg


def _error_type(response):
    data = response.json()
    if "error_type" in data:
        return data["error_type"]
    return data.get("detail", {}).get("error_type")


def test_health_endpoint() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert float(response.headers[TOTAL_HEADER]) >= 0


def test_last_trace_before_any_request() -> None:
    response = client.get("/v1/traces/last")
    assert response.status_code == 404
    assert _error_type(response) == "no_trace"


def test_demo_request_is_recorded() -> None:
    response = client.get("/v1/demo", params={"items": 2})
    assert response.status_code == 200
    assert response.json()["items"] == 2

    trace = client.get("/v1/traces/last")
    assert trace.status_code == 200
    body = trace.json()
    assert "name" not in body
    (action,) = body["children"]
    assert action["name"] == "ProductsController#index"
    assert action["layer"] == "controller"
    names = [child["name"] for child in action["children"]]
    assert names[:2] == ["before_action: authenticate", "Product.find(:all)"]
    assert names[-1] == "(Other)"
    assert sum(body["layer_portions"].values()) == pytest.approx(1.0)


def test_each_request_gets_its_own_trace() -> None:
    client.get("/v1/demo", params={"items": 1})
    client.get("/v1/demo", params={"items": 4})

    trace = client.get("/v1/traces/last").json()
    assert len(trace["children"]) == 1

    listed = client.get("/v1/traces").json()
    routes = [entry["route"] for entry in listed]
    assert routes == ["GET /v1/demo", "GET /v1/demo", "GET /v1/traces/last"]
    assert listed[0]["steps"] < listed[1]["steps"]
    assert listed[2]["steps"] == 0


def test_validated_export(monkeypatch) -> None:
    _override_api_config(validate_exports=True)
    client.get("/v1/demo")

    response = client.get("/v1/traces/last")
    assert response.status_code == 200


def test_disabled_profiler_records_nothing() -> None:
    _override_api_config(enabled=False)

    response = client.get("/v1/demo")

    assert response.status_code == 200
    assert TOTAL_HEADER not in response.headers
    assert len(trace_store) == 0


def test_inconsistent_trace_surfaces_calculation_error() -> None:
    broken = RootStep(duration_ms=5).adopt(Step("overrun", "model", duration_ms=9))
    trace_store.add("GET /broken", broken)

    response = client.get("/v1/traces/last")

    assert response.status_code == 500
    assert _error_type(response) == "calculation_error"


def test_concurrent_requests_record_separate_traces() -> None:
    sizes = [1, 2, 3, 4]

    async def fire() -> list[httpx.Response]:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            requests = [http.get("/v1/demo", params={"items": n, "delay_ms": 20}) for n in sizes]
            return await asyncio.gather(*requests)

    started = time.perf_counter()
    responses = asyncio.run(fire())
    wall_ms = (time.perf_counter() - started) * 1000

    assert [response.status_code for response in responses] == [200] * len(sizes)
    recorded = trace_store.recent()
    assert len(recorded) == len(sizes)

    seen_sizes = []
    for route, root in recorded:
        assert route == "GET /v1/demo"
        (action,) = root.children
        assert action.name == "ProductsController#index"
        items = int(action.extras["items"])
        prices = [child for child in action.children if child.name.startswith("Product#price")]
        assert len(prices) == items
        assert all(child.parent is action for child in action.children)
        seen_sizes.append(items)
    assert sorted(seen_sizes) == sizes

    # Served one after another the batch would take the sum of its traces.
    serial_ms = sum(root.duration_ms for _, root in recorded)
    assert wall_ms < serial_ms * 0.75
    totals = sorted(float(response.headers[TOTAL_HEADER]) for response in responses)
    assert totals == pytest.approx(sorted(root.duration_ms for _, root in recorded), abs=0.01)
