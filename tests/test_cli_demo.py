from __future__ import annotations

import json

from typer.testing import CliRunner

from tuneup_profiler import cli as cli_module
from tuneup_profiler.cli import app

runner = CliRunner()


def test_demo_then_report(tmp_path) -> None:
    output = tmp_path / "trace.json"

    result = runner.invoke(app, ["demo", "--items", "2", "--delay-ms", "0", "--output", str(output)])

    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["children"][0]["name"] == "ProductsController#index"

    report = runner.invoke(app, ["report", str(output), "--width", "20", "--validate"])

    assert report.exit_code == 0, report.output
    assert report.output.startswith("Total ")
    assert "ProductsController#index [controller]" in report.output
    assert "Product.find(:all) [model]" in report.output
    assert "(Other)" in report.output


def test_report_limits_depth(tmp_path) -> None:
    output = tmp_path / "trace.json"
    runner.invoke(app, ["demo", "--items", "1", "--delay-ms", "0", "--output", str(output)])

    report = runner.invoke(app, ["report", str(output), "--max-depth", "1"])

    assert report.exit_code == 0, report.output
    assert "ProductsController#index" in report.output
    assert "Product.find(:all)" not in report.output


def test_report_rejects_inconsistent_trace(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text(
        json.dumps(
            {
                "time": 5.0,
                "layer_portions": {"model": 1.0, "view": 0.0, "controller": 0.0},
                "children": [
                    {
                        "name": "overrun",
                        "layer": "model",
                        "time": 9.0,
                        "proportion": 1.0,
                        "layer_portions": {"model": 1.0, "view": 0.0, "controller": 0.0},
                        "children": [],
                    }
                ],
            }
        ),
        encoding="utf-8",
    )

    report = runner.invoke(app, ["report", str(path), "--no-validate"])

    assert report.exit_code == 1
    assert "exceed" in report.output


def test_report_rejects_invalid_file(tmp_path) -> None:
    path = tmp_path / "invalid.json"
    path.write_text(json.dumps({"name": "root", "time": 1}), encoding="utf-8")

    report = runner.invoke(app, ["report", str(path), "--validate"])

    assert report.exit_code != 0


def test_serve_runs_the_api_under_uvicorn(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(cli_module.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))

    result = runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "9001"])

    assert result.exit_code == 0, result.output
    assert calls == [("tuneup_profiler.api:app", {"host": "0.0.0.0", "port": 9001, "reload": False})]
