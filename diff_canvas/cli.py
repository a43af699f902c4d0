"""CLI entrypoint for diff-canvas."""

from __future__ import annotations

import json
import logging
import re
import sys
from pathlib import Path
from typing import Annotated

import typer

from diff_canvas import __version__
from diff_canvas.batch import BatchOrchestrator, load_diff_payload
from diff_canvas.config import AppConfig, default_config_template, load_app_config
from diff_canvas.display import HtmlCanvas
from diff_canvas.output import render_html_table, render_human, render_json
from diff_canvas.render import build_rows

app = typer.Typer(
    name="diff-canvas",
    no_args_is_help=True,
    help="Render unified diffs with import/whitespace noise removed and moved code marked.",
)

_UNSAFE_ID_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]+")


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("render")
def render_command(
    diff_file: Annotated[Path | None, typer.Option(help="Path to unified diff file.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read unified diff from stdin.")] = False,
    repo: Annotated[Path, typer.Option(help="Repository path for config lookup.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: html|json|human.", show_default="html")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Render a single diff as display rows."""
    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"html", "json", "human"}:
        raise typer.BadParameter("format must be one of: html, json, human", param_hint="--format")

    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")
    if diff_file is None and not stdin:
        raise typer.BadParameter("Provide --diff-file or --stdin.")

    if diff_file is not None:
        diff_text = _read_text_or_raise(diff_file, "--diff-file")
        source = f"diff_file:{diff_file}"
    else:
        diff_text = sys.stdin.read()
        source = "stdin"

    rows = build_rows(diff_text, app_config)
    if output_format == "json":
        typer.echo(render_json(rows, source=source))
    elif output_format == "human":
        typer.echo(render_human(rows))
    else:
        typer.echo(render_html_table(rows))


@app.command("batch")
def batch_command(
    payload: Annotated[Path, typer.Option(help="JSON object mapping keys to diffs.")],
    out: Annotated[Path, typer.Option(help="Output HTML page path.")] = Path("diff-canvas.html"),
    title: Annotated[str, typer.Option(help="Page title.")] = "Diff review",
    repo: Annotated[Path, typer.Option(help="Repository path for config lookup.")] = Path("."),
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Render every diff in a keyed JSON payload into one HTML page."""
    app_config = _load_config_or_raise(repo, config_file)
    payload_text = _read_text_or_raise(payload, "--payload")
    decoded = load_diff_payload(payload_text)
    if decoded is None:
        typer.echo(f"No diffs rendered: invalid or empty payload in {payload}", err=True)
        raise typer.Exit(code=1)

    canvas = HtmlCanvas()
    for position, key in enumerate(decoded):
        canvas.add(element_id=_element_id(key, position), diff_key=key, label=key)

    rendered = BatchOrchestrator.from_canvas(canvas, decoded, config=app_config).run()
    out_path = out.resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(canvas.to_html(title=title), encoding="utf-8")
    typer.echo(f"Rendered {rendered} diff(s) to: {out_path}")


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    payload = _load_config_or_raise(repo, config_file).to_dict()
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- empty_message: {payload['empty_message']}",
        f"- filters: {payload['filters']}",
        f"- moves: {payload['moves']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".diff-canvas.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _read_text_or_raise(path: Path, param_hint: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}", param_hint=param_hint) from exc


def _element_id(key: str, position: int) -> str:
    slug = _UNSAFE_ID_CHARS_RE.sub("-", key).strip("-") or "diff"
    return f"diff-{position}-{slug}"
