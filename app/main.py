from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.processor import build_default_processor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Start the dataset processor and stop its workers on shutdown.

    Datasets still queued at shutdown are cancelled and keep their
    ``uploaded`` status; the cached processor is dropped so the next app
    instance starts with fresh workers.
    """
    processor = build_default_processor()
    logger.info(
        "MKT service started",
        extra={"activation_energy": processor.calculator.config.activation_energy},
    )
    try:
        yield
    finally:
        pending = processor.pending_datasets()
        if pending:
            logger.warning(
                "Stopping with datasets still queued",
                extra={"row_count": len(pending), "status": "cancelled"},
            )
        processor.shutdown()
        build_default_processor.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="MKT Calculator",
        description=(
            "Ingests CSV, XML, YAML and JSON temperature logs and computes "
            "Mean Kinetic Temperature with descriptive statistics."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
