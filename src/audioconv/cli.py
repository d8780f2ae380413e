"""CLI interface for audioconv."""

from __future__ import annotations

import json
import shlex
from pathlib import Path

import typer

from .errors import ConversionError
from .interfaces.cli_handlers import (
    configure_logging,
    probe_file,
    render_command,
    run_worker,
    serve,
)
from .utils.config import ServiceConfig, load_service_config

app = typer.Typer(help="audioconv command line interface")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Optional YAML/JSON config file; environment variables override it.",
)


def _load(config_path: Path | None) -> ServiceConfig:
    config = load_service_config(config_path)
    configure_logging(config.log_level)
    return config


@app.command("serve")
def serve_command(
    config_path: Path | None = _CONFIG_OPTION,
    host: str | None = typer.Option(None, "--host", help="Bind address (defaults to config)."),
    port: int | None = typer.Option(None, "--port", min=1, max=65535, help="Bind port (defaults to config)."),
) -> None:
    """Run the HTTP API."""

    config = _load(config_path)
    overrides = {key: value for key, value in {"host": host, "port": port}.items() if value is not None}
    serve(config.model_copy(update=overrides))


@app.command("worker")
def worker_command(
    config_path: Path | None = _CONFIG_OPTION,
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        min=1,
        help="Worker threads; defaults to the configured concurrency.",
    ),
) -> None:
    """Consume queued conversion jobs."""

    run_worker(_load(config_path), concurrency)


@app.command("probe")
def probe_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local audio file to inspect."),
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Print probed metadata for a local file as JSON."""

    try:
        metadata = probe_file(path, _load(config_path))
    except ConversionError as error:
        typer.echo(json.dumps(error.as_dict()), err=True)
        raise typer.Exit(code=1) from error
    typer.echo(json.dumps(metadata, indent=2))


@app.command("build-command")
def build_command_command(
    params: str = typer.Option(..., "--params", help="Conversion request as a JSON object."),
    input_path: Path = typer.Option(Path("input"), "--input", help="Input path placed in the command."),
    output_path: Path = typer.Option(Path("output"), "--output", help="Output path placed in the command."),
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Print the transcoder invocation a request would produce."""

    try:
        command, filename = render_command(params, input_path, output_path, _load(config_path))
    except json.JSONDecodeError as error:
        typer.echo(f"Invalid JSON: {error}", err=True)
        raise typer.Exit(code=2) from error
    except ConversionError as error:
        typer.echo(error.message, err=True)
        raise typer.Exit(code=2) from error

    typer.echo(shlex.join(command))
    typer.echo(f"Output filename: {filename}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
