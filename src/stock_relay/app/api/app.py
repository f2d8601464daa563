from __future__ import annotations

import os
import uuid
from typing import Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Response

from stock_relay.adapters.catalog.factory import build_gateway
from stock_relay.adapters.catalog.memory import InMemoryCatalog
from stock_relay.adapters.storage.s3 import S3Adapter
from stock_relay.app.artifacts.writer import ImportArtifactWriter
from stock_relay.app.config.loader import load_app_config
from stock_relay.app.models.config import AppConfig
from stock_relay.app.models.imports import (
    ConnectionStatus,
    ImportRequest,
    ImportResponse,
    ValidationResponse,
)
from stock_relay.engine.canonical.io import template_csv_bytes
from stock_relay.engine.reconcile.catalog import CatalogGateway
from stock_relay.engine.run import ImportResult, run_import, validate_import
from stock_relay.engine.validation.report import display_issues, summary_line
from stock_relay.util.logging import get_logger, log_event
from stock_relay.util.metrics import CloudWatchMetrics

config = load_app_config(os.getenv("STOCK_RELAY_CONFIG"))
gateway: CatalogGateway = (
    build_gateway(config.catalog)
    if config.catalog.type == "memory" or config.catalog.configured
    else InMemoryCatalog()
)
artifact_writer: Optional[ImportArtifactWriter] = (
    ImportArtifactWriter(S3Adapter(config.report.artifact_bucket), prefix=config.report.artifact_prefix)
    if config.report.artifact_bucket
    else None
)
metrics = CloudWatchMetrics.from_env()

logger = get_logger("stock_relay.api")

app = FastAPI(title="stock-relay")


def get_config() -> AppConfig:
    return config


def get_gateway() -> CatalogGateway:
    return gateway


def get_artifact_writer() -> Optional[ImportArtifactWriter]:
    return artifact_writer


def _publish_artifacts(
    writer: Optional[ImportArtifactWriter],
    import_id: str,
    result: ImportResult,
) -> Dict[str, str]:
    if not writer:
        return {}
    keys = writer.write(import_id, result)
    return {name: writer.s3.presign(key) for name, key in keys.items()}


@app.get("/v1/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/v1/imports/template")
async def import_template() -> Response:
    return Response(
        content=template_csv_bytes(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="inventory_import_template.csv"'},
    )


@app.post("/v1/imports/validate")
def validate(request: ImportRequest, app_config: AppConfig = Depends(get_config)) -> ValidationResponse:
    report = validate_import(request.content, app_config)
    return ValidationResponse(
        report=report,
        summary=summary_line(report),
        display=display_issues(report, app_config.report.display_limit),
    )


@app.post("/v1/imports/apply")
def apply_import(
    request: ImportRequest,
    app_config: AppConfig = Depends(get_config),
    catalog: CatalogGateway = Depends(get_gateway),
    writer: Optional[ImportArtifactWriter] = Depends(get_artifact_writer),
) -> ImportResponse:
    import_id = str(uuid.uuid4())
    result = run_import(text=request.content, config=app_config, gateway=catalog, metrics=metrics)
    artifacts = _publish_artifacts(writer, import_id, result)
    if not result.applied:
        log_event(logger, "import_rejected", import_id=import_id, issues=result.report.issue_count)
        raise HTTPException(
            status_code=422,
            detail={
                "import_id": import_id,
                "summary": summary_line(result.report),
                "display": display_issues(result.report, app_config.report.display_limit),
                "report": result.report.model_dump(mode="json"),
                "artifacts": artifacts,
            },
        )
    log_event(logger, "import_applied", import_id=import_id, **result.summary.model_dump())
    return ImportResponse(
        import_id=import_id,
        report=result.report,
        outcomes=result.outcomes,
        summary=result.summary,
        artifacts=artifacts,
    )


@app.get("/v1/catalog/connection")
def catalog_connection(
    app_config: AppConfig = Depends(get_config),
    catalog: CatalogGateway = Depends(get_gateway),
) -> ConnectionStatus:
    test_connection = getattr(catalog, "test_connection", None)
    connected = bool(test_connection()) if test_connection else False
    catalog_type = "memory" if isinstance(catalog, InMemoryCatalog) else app_config.catalog.type
    return ConnectionStatus(connected=connected, catalog_type=catalog_type)
