"""Typer CLI for recording demo traces and reporting on exported ones."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import typer
import uvicorn
from pydantic import ValidationError

from .aggregation import disparity, layer_portions
from .bar import bar_segments, render_text_bar
from .config import AppConfig, config
from .contracts import validate_export
from .demo_utils import run_synthetic_request
from .layers import Layer
from .recorder import profile
from .schemas import export_trace, load_trace
from .steps import RootStep, TuneupError
from .timing import count_steps, format_ms, summarize_trace

app = typer.Typer(help="Record and inspect model/view/controller timing traces.")


@app.command()
def demo(
    items: int = typer.Option(3, "--items", min=1, help="Number of synthetic records to load and render."),
    delay_ms: float = typer.Option(2.0, "--delay-ms", min=0.0, help="Sleep added to every leaf step."),
    output: Path = typer.Option(
        Path("outputs/trace.json"),
        "--output",
        "-o",
        help="Location where the exported trace will be written.",
    ),
    pretty: bool = typer.Option(True, help="Pretty-print JSON output with indentation."),
) -> None:
    """Record a synthetic controller action and export its trace as JSON."""

    root = profile(run_synthetic_request, items, delay_ms=delay_ms)
    payload = _export_payload(root, config)
    _write_json_output(output, payload, pretty)
    summary = summarize_trace(root, config.default_layer)
    typer.echo(
        f"Recorded {count_steps(root)} step(s) in {format_ms(root.duration_ms)} "
        f"(model={format_ms(summary.model_ms)} view={format_ms(summary.view_ms)} "
        f"controller={format_ms(summary.controller_ms)}) → {output}"
    )


@app.command()
def report(
    input_path: Path = typer.Argument(..., help="Path to an exported trace (.json)."),
    width: int = typer.Option(40, "--width", min=1, help="Characters used by a full-width bar."),
    max_depth: int = typer.Option(0, "--max-depth", min=0, help="Limit nesting depth (0 = unlimited)."),
    default_layer: Layer = typer.Option(
        config.default_layer,
        "--default-layer",
        help="Layer that receives unclassified time.",
    ),
    validate: bool = typer.Option(
        config.validate_exports,
        "--validate/--no-validate",
        help="Check the file against the export schema before loading it.",
    ),
) -> None:
    """Print the step tree of an exported trace with per-layer bars."""

    payload = _load_payload(input_path)
    if validate:
        try:
            validate_export(payload)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
    try:
        root = load_trace(payload)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid trace export: {exc}") from exc

    cfg = replace(config, default_layer=default_layer, min_segment=1.0, label_min_width=3.0)
    try:
        lines = _render_tree(root, cfg, width=width, max_depth=max_depth)
    except TuneupError as exc:
        typer.echo(f"Cannot report on {input_path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo("\n".join(lines))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", min=1, max=65535, help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload/--no-reload", help="Restart the server when sources change."),
) -> None:
    """Run the profiled demo API under uvicorn."""

    uvicorn.run("tuneup_profiler.api:app", host=host, port=port, reload=reload)


def _export_payload(root: RootStep, cfg: AppConfig) -> dict[str, Any]:
    payload = export_trace(root, cfg.default_layer).model_dump(mode="json")
    if cfg.validate_exports:
        validate_export(payload)
    return payload


def _load_payload(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read trace export {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise typer.BadParameter("Trace export must be a JSON object.")
    return payload


def _render_tree(root: RootStep, cfg: AppConfig, *, width: int, max_depth: int) -> list[str]:
    portions = layer_portions(root, cfg.default_layer)
    header = " ".join(f"{layer.value}={portions[layer]:.0%}" for layer in Layer)
    lines = [
        f"Total {format_ms(root.duration_ms)} across {count_steps(root)} step(s) [{header}]",
        f"  {render_text_bar(bar_segments(root, cfg, width=width))}",
    ]
    lines.extend(_render_children(root, cfg, width=width, depth=1, max_depth=max_depth))
    other_ms = disparity(root)
    if root.children and other_ms > 0:
        lines.append(f"  (Other) {format_ms(other_ms)}")
    return lines


def _render_children(node: RootStep, cfg: AppConfig, *, width: int, depth: int, max_depth: int) -> list[str]:
    if max_depth and depth > max_depth:
        return []
    lines: list[str] = []
    indent = "  " * depth
    for child in node.children:
        layer = child.layer.value if child.layer else "-"
        bar = render_text_bar(bar_segments(child, cfg, width=width))
        lines.append(f"{indent}{child.name} [{layer}] {format_ms(child.duration_ms)} {bar}".rstrip())
        lines.extend(_render_children(child, cfg, width=width, depth=depth + 1, max_depth=max_depth))
        if child.children and (not max_depth or depth < max_depth):
            lines.append(f"{indent}  (Other) {format_ms(disparity(child))}")
    return lines


def _write_json_output(path: Path, payload: dict[str, Any], pretty: bool) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    indent = 2 if pretty else None
    path.write_text(json.dumps(payload, indent=indent), encoding="utf-8")


if __name__ == "__main__":
    app()
