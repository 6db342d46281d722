"""Helpers for generating deterministic MVC workloads for demos and benchmarks."""

from __future__ import annotations

from random import Random
from time import sleep

from .layers import Layer
from .recorder import step

_RESOURCES = ["Sofa", "Dining Chair", "Coffee Table", "Desk Lamp", "Bed", "Bookshelf"]
_TEMPLATES = ["index", "show", "_row", "_sidebar", "layout"]


def run_synthetic_request(items: int, *, seed: int = 42, delay_ms: float = 0.0) -> list[str]:
    """Emulate one controller action that loads records and renders a page.

    ``delay_ms`` adds a sleep inside every leaf step so traces have visible
    proportions; the default keeps tests fast.
    """

    rng = Random(seed)
    rows: list[str] = []
    with step("ProductsController#index", Layer.CONTROLLER, {"items": items}):
        with step("before_action: authenticate", Layer.CONTROLLER):
            _pause(delay_ms)
        with step("Product.find(:all)", Layer.MODEL, {"sql": "SELECT * FROM products"}):
            records = [_pick(rng, _RESOURCES) for _ in range(items)]
            _pause(delay_ms)
        for index, record in enumerate(records):
            with step(f"Product#price ({index})", Layer.MODEL):
                price = round(rng.uniform(49, 999), 2)
                _pause(delay_ms / 2)
            rows.append(f"{record}: {price:.2f}")
        with step(f"render {_pick(rng, _TEMPLATES[:2])}", Layer.VIEW):
            for index, row in enumerate(rows):
                with step(f"render _row ({index})", Layer.VIEW, {"row": row}):
                    _pause(delay_ms / 2)
            with step("layout"):
                _pause(delay_ms)
    return rows


def _pause(delay_ms: float) -> None:
    if delay_ms > 0:
        sleep(delay_ms / 1000)


def _pick(rng: Random, items: list[str]) -> str:
    return rng.choice(items)
