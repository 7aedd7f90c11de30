from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_dataset, render_dataset_list, render_mkt, render_statistics
from models.errors import MktError
from services.analysis import analyze
from services.mkt import MktCalculator, MktConfig
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Upload temperature logs and compute Mean Kinetic Temperature.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between status checks when waiting for completion.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum seconds to wait when polling for results.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Path to a CSV, XML, YAML or JSON file."
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Dataset name."),
    description: Optional[str] = typer.Option(None, "--description", help="Dataset description."),
    activation_energy: Optional[float] = typer.Option(
        None, "--activation-energy", "-e", help="Activation energy in kJ/mol."
    ),
    wait: bool = typer.Option(
        False,
        "--wait/--no-wait",
        help="Wait for processing to finish and display the result.",
    ),
) -> None:
    """Upload a temperature file for asynchronous processing."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    dataset_id = state.client.upload_file(
        file, name=name, description=description, activation_energy=activation_energy
    )
    typer.secho(f"Upload accepted. dataset_id={dataset_id}", fg=typer.colors.GREEN)

    if not wait:
        return

    interval = state.config.poll_interval
    poll_timeout = state.config.poll_timeout
    typer.echo(f"Waiting for processing (interval={interval}s, timeout={poll_timeout}s)...")
    payload = state.client.poll_dataset(dataset_id, interval=interval, timeout=poll_timeout)
    typer.echo()
    render_dataset(payload)


@app.command("result")
def result_command(
    ctx: typer.Context,
    dataset_id: str = typer.Argument(..., help="Identifier returned from the upload command."),
) -> None:
    """Fetch processing status, statistics and MKT for a dataset."""
    state = _get_state(ctx)
    render_dataset(state.client.get_dataset(dataset_id))


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List uploaded datasets, newest first."""
    state = _get_state(ctx)
    render_dataset_list(state.client.list_datasets())


@app.command("recalculate")
def recalculate_command(
    ctx: typer.Context,
    dataset_id: str = typer.Argument(...),
    activation_energy: Optional[float] = typer.Option(
        None, "--activation-energy", "-e", help="New activation energy in kJ/mol."
    ),
) -> None:
    """Recalculate MKT for a processed dataset."""
    state = _get_state(ctx)
    render_dataset(state.client.recalculate(dataset_id, activation_energy))


@app.command("export")
def export_command(
    ctx: typer.Context,
    dataset_id: str = typer.Argument(...),
    fmt: str = typer.Option("csv", "--format", "-f", help="Export format: csv or json."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="File to write; defaults to the server-provided name."
    ),
) -> None:
    """Download a dataset's readings as CSV or JSON."""
    state = _get_state(ctx)
    filename, content = state.client.export_dataset(dataset_id, fmt)
    target = output or Path(filename)
    target.write_text(content, encoding="utf-8")
    typer.secho(f"Exported to {target}", fg=typer.colors.GREEN)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    dataset_id: str = typer.Argument(...),
) -> None:
    """Delete a dataset and its stored upload."""
    state = _get_state(ctx)
    state.client.delete_dataset(dataset_id)
    typer.echo(f"Deleted dataset {dataset_id}.")


@app.command("mkt")
def mkt_command(
    ctx: typer.Context,
    temperatures: List[float] = typer.Argument(..., help="Temperatures in Celsius."),
    activation_energy: Optional[float] = typer.Option(
        None, "--activation-energy", "-e", help="Activation energy in kJ/mol."
    ),
) -> None:
    """Calculate MKT for temperatures given on the command line."""
    state = _get_state(ctx)
    render_mkt(state.client.calculate_mkt(temperatures, activation_energy))


@app.command("analyze")
def analyze_command(
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Path to a CSV, XML, YAML or JSON file."
    ),
    activation_energy: Optional[float] = typer.Option(
        None, "--activation-energy", "-e", help="Activation energy in kJ/mol."
    ),
) -> None:
    """Compute statistics and MKT locally, without the service."""
    settings = get_settings()
    try:
        calculator = MktCalculator(MktConfig(activation_energy=settings.default_activation_energy))
        analysis = analyze(
            file,
            activation_energy=activation_energy,
            calculator=calculator,
            max_bytes=settings.max_upload_bytes,
        )
    except MktError as exc:
        typer.secho(f"Analysis failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    render_mkt(
        {
            "mkt": analysis.mkt.mkt_celsius,
            "activation_energy": analysis.mkt.activation_energy,
            "temperature_count": analysis.mkt.temperature_count,
        }
    )
    typer.echo()
    statistics = analysis.statistics
    render_statistics(
        {
            "count": statistics.count,
            "minimum": statistics.minimum,
            "maximum": statistics.maximum,
            "average": statistics.average,
            "standard_deviation": statistics.standard_deviation,
        }
    )
