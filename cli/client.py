from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig

_MEDIA_TYPES = {
    ".csv": "text/csv",
    ".xml": "application/xml",
    ".yml": "application/x-yaml",
    ".yaml": "application/x-yaml",
    ".json": "application/json",
}


class ApiClient:
    """Minimal HTTP client for the MKT service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def upload_file(
        self,
        path: Path,
        name: Optional[str] = None,
        description: Optional[str] = None,
        activation_energy: Optional[float] = None,
    ) -> str:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        form: Dict[str, str] = {}
        if name:
            form["name"] = name
        if description:
            form["description"] = description
        if activation_energy is not None:
            form["activation_energy"] = str(activation_energy)

        media_type = _MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream")
        with path.open("rb") as handle:
            response = self._send(
                "POST",
                "/datasets",
                files={"file": (path.name, handle, media_type)},
                data=form,
            )
        dataset_id = response.json().get("dataset_id")
        if not isinstance(dataset_id, str):
            raise typer.BadParameter("Unexpected response payload when uploading file.")
        return dataset_id

    def get_dataset(self, dataset_id: str) -> Dict[str, Any]:
        return self._send("GET", f"/datasets/{dataset_id}").json()

    def list_datasets(self) -> List[Dict[str, Any]]:
        return self._send("GET", "/datasets").json()

    def recalculate(self, dataset_id: str, activation_energy: Optional[float] = None) -> Dict[str, Any]:
        body = {"activation_energy": activation_energy} if activation_energy is not None else None
        return self._send("POST", f"/datasets/{dataset_id}/calculate", json=body).json()

    def delete_dataset(self, dataset_id: str) -> None:
        self._send("DELETE", f"/datasets/{dataset_id}")

    def export_dataset(self, dataset_id: str, fmt: str) -> tuple[str, str]:
        response = self._send("GET", f"/datasets/{dataset_id}/export", params={"format": fmt})
        disposition = response.headers.get("content-disposition", "")
        filename = disposition.rpartition("filename=")[2].strip('"') or f"{dataset_id}.{fmt}"
        return filename, response.text

    def calculate_mkt(
        self, temperatures: List[float], activation_energy: Optional[float] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"temperatures": temperatures}
        if activation_energy is not None:
            body["activation_energy"] = activation_energy
        return self._send("POST", "/calculate-mkt", json=body).json()

    def poll_dataset(self, dataset_id: str, interval: float, timeout: float) -> Dict[str, Any]:
        deadline = time.monotonic() + timeout
        last_payload: Dict[str, Any] | None = None
        while time.monotonic() <= deadline:
            last_payload = self.get_dataset(dataset_id)
            if last_payload.get("status") not in {"uploaded", "processing"}:
                return last_payload
            time.sleep(interval)
        typer.secho(
            (
                f"Timed out waiting for processing of {dataset_id}. "
                f"Last status: {last_payload.get('status') if last_payload else 'unknown'}"
            ),
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            detail = exc.response.json().get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
