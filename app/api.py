"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)

from app.schemas import (
    DatasetRecord,
    DatasetSummary,
    DatasetUploadResponse,
    MktRequest,
    MktResponse,
    RecalculateRequest,
)
from models.errors import MktError
from services.processor import DatasetNotReadyError, ProcessorService, build_default_processor

router = APIRouter()


def get_processor() -> ProcessorService:
    return build_default_processor()


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0])


@router.post(
    "/datasets",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=DatasetUploadResponse,
    summary="Upload a temperature file for asynchronous MKT processing.",
)
async def upload_dataset(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="CSV, XML, YAML or JSON file of temperature readings."),
    name: Optional[str] = Form(None, description="Dataset name; defaults to the file name."),
    description: Optional[str] = Form(None),
    activation_energy: Optional[float] = Form(None, description="Activation energy in kJ/mol."),
    processor: ProcessorService = Depends(get_processor),
) -> DatasetUploadResponse:
    try:
        dataset_id = processor.enqueue_upload(
            background_tasks,
            file,
            name=name,
            description=description,
            activation_energy=activation_energy,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return DatasetUploadResponse(dataset_id=dataset_id)


@router.get(
    "/datasets",
    response_model=List[DatasetSummary],
    summary="List uploaded datasets, newest first.",
)
async def list_datasets(
    processor: ProcessorService = Depends(get_processor),
) -> List[DatasetSummary]:
    return processor.list_datasets()


@router.get(
    "/datasets/{dataset_id}",
    response_model=DatasetRecord,
    summary="Fetch processing status, statistics, MKT and readings for a dataset.",
)
async def get_dataset(
    dataset_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> DatasetRecord:
    try:
        return processor.fetch_dataset(dataset_id)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.post(
    "/datasets/{dataset_id}/calculate",
    response_model=DatasetRecord,
    summary="Recalculate MKT, optionally with a different activation energy.",
)
async def recalculate_dataset(
    dataset_id: str,
    request: Optional[RecalculateRequest] = Body(None),
    processor: ProcessorService = Depends(get_processor),
) -> DatasetRecord:
    activation_energy = request.activation_energy if request else None
    try:
        return processor.recalculate(dataset_id, activation_energy)
    except KeyError as exc:
        raise _not_found(exc) from exc
    except DatasetNotReadyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except MktError as exc:
        raise _bad_request(exc) from exc


@router.delete(
    "/datasets/{dataset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a dataset and its stored upload.",
)
async def delete_dataset(
    dataset_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> Response:
    try:
        processor.delete_dataset(dataset_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/datasets/{dataset_id}/export",
    summary="Download the dataset readings as CSV or JSON.",
)
async def export_dataset(
    dataset_id: str,
    fmt: str = Query("csv", alias="format", description="Export format: csv or json."),
    processor: ProcessorService = Depends(get_processor),
) -> Response:
    try:
        payload = processor.export(dataset_id, fmt)
    except KeyError as exc:
        raise _not_found(exc) from exc
    except DatasetNotReadyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except MktError as exc:
        raise _bad_request(exc) from exc
    return Response(
        content=payload.content,
        media_type=payload.media_type,
        headers={"Content-Disposition": f'attachment; filename="{payload.filename}"'},
    )


@router.post(
    "/calculate-mkt",
    response_model=MktResponse,
    summary="Calculate MKT for a list of Celsius temperatures.",
)
async def calculate_mkt(
    request: MktRequest,
    processor: ProcessorService = Depends(get_processor),
) -> MktResponse:
    try:
        result = processor.calculate_mkt(request.temperatures, request.activation_energy)
    except MktError as exc:
        raise _bad_request(exc) from exc
    return MktResponse.from_result(result)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
