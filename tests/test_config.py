from __future__ import annotations

import pytest

from tuneup_profiler.config import load_config
from tuneup_profiler.layers import Layer, parse_layer


def test_defaults(monkeypatch) -> None:
    for name in ("TUNEUP_ENABLED", "TUNEUP_DEFAULT_LAYER", "TUNEUP_BAR_WIDTH", "TUNEUP_CAPTURE_CALLERS"):
        monkeypatch.delenv(name, raising=False)

    cfg = load_config()

    assert cfg.enabled is True
    assert cfg.default_layer is Layer.CONTROLLER
    assert cfg.bar_width == 200
    assert cfg.capture_callers is False


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TUNEUP_ENABLED", "off")
    monkeypatch.setenv("TUNEUP_DEFAULT_LAYER", " View ")
    monkeypatch.setenv("TUNEUP_BAR_WIDTH", "80")
    monkeypatch.setenv("TUNEUP_CALLER_DEPTH", "0")
    monkeypatch.setenv("TUNEUP_MAX_TRACES", "3")

    cfg = load_config()

    assert cfg.enabled is False
    assert cfg.default_layer is Layer.VIEW
    assert cfg.bar_width == 80
    assert cfg.caller_depth == 0
    assert cfg.max_traces == 3


def test_invalid_values_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("TUNEUP_DEFAULT_LAYER", "database")
    monkeypatch.setenv("TUNEUP_BAR_WIDTH", "wide")
    monkeypatch.setenv("TUNEUP_MAX_TRACES", "0")

    cfg = load_config()

    assert cfg.default_layer is Layer.CONTROLLER
    assert cfg.bar_width == 200
    assert cfg.max_traces == 10


def test_parse_layer() -> None:
    assert parse_layer("MODEL") is Layer.MODEL
    assert parse_layer(Layer.VIEW) is Layer.VIEW
    assert parse_layer(None) is None
    assert parse_layer("  ") is None
    with pytest.raises(ValueError, match="Unknown layer"):
        parse_layer("database")
