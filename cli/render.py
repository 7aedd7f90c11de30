from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_temperature(value: Any) -> str:
    if value is None:
        return "-"
    return f"{float(value):.4f} °C"


def render_statistics(statistics: Dict[str, Any] | None) -> None:
    echo_heading("Statistics")
    if not statistics or not statistics.get("count"):
        typer.echo("No statistics available.")
        return
    echo_key_values(
        [
            ("count", statistics.get("count")),
            ("minimum", _format_temperature(statistics.get("minimum"))),
            ("maximum", _format_temperature(statistics.get("maximum"))),
            ("average", _format_temperature(statistics.get("average"))),
            ("standard_deviation", f"{statistics.get('standard_deviation'):.4f}"),
        ]
    )


def render_dataset(payload: Dict[str, Any]) -> None:
    echo_heading("Dataset")
    echo_key_values(
        [
            ("dataset_id", payload.get("dataset_id")),
            ("name", payload.get("name")),
            ("file", f"{payload.get('filename')} ({payload.get('file_type')}, {payload.get('file_size')} bytes)"),
            ("status", payload.get("status")),
            ("uploaded_at", payload.get("uploaded_at")),
            ("processed_at", payload.get("processed_at")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    typer.echo()
    echo_heading("Mean Kinetic Temperature")
    echo_key_values(
        [
            ("mkt", _format_temperature(payload.get("mkt_value"))),
            ("activation_energy", f"{payload.get('activation_energy')} kJ/mol"),
            ("start_time", payload.get("start_time")),
            ("end_time", payload.get("end_time")),
        ]
    )

    typer.echo()
    render_statistics(payload.get("statistics"))

    error = payload.get("error")
    if error:
        typer.echo()
        typer.secho(f"Error: {error}", fg=typer.colors.RED)


def render_dataset_list(items: List[Dict[str, Any]]) -> None:
    if not items:
        typer.echo("No datasets uploaded yet.")
        return
    for item in items:
        typer.echo(
            f"{item.get('dataset_id')}  {item.get('status'):<10}  "
            f"{_format_temperature(item.get('mkt_value')):>14}  {item.get('name')}"
        )


def render_mkt(payload: Dict[str, Any]) -> None:
    echo_heading("Mean Kinetic Temperature")
    echo_key_values(
        [
            ("mkt", _format_temperature(payload.get("mkt"))),
            ("activation_energy", f"{payload.get('activation_energy')} kJ/mol"),
            ("temperature_count", payload.get("temperature_count")),
        ]
    )
