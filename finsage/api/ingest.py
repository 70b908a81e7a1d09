# =============================================================================
# Ingestion API — Document Upload and Status Tracking
# =============================================================================
#
# ENDPOINTS:
#   POST /ingest            — validate upload, schedule ingestion, return task_id
#   GET  /ingest/{task_id}  — poll status, progress and result
#   GET  /files             — every file processed in this session
#
# DESIGN DECISION: Validation (size, credential, file kind) runs inside the
# request, so bad uploads are rejected with a 4xx before any job exists.
# Only the processing itself runs as a background task.
#
# DESIGN DECISION: 202 Accepted (not 200 OK) for POST /ingest.
# The document is accepted for processing, which has not completed yet.
# =============================================================================

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile

from finsage.api.deps import get_config, get_pipeline, get_session
from finsage.config import Settings
from finsage.models.responses import (
    IngestResponse,
    IngestStatusResponse,
    ProcessedFileResponse,
    ProcessedFilesResponse,
)
from finsage.services.ingestion import (
    IngestionJob,
    IngestionPipeline,
    run_ingestion_job,
    validate_upload,
)
from finsage.services.parser import UploadedFile
from finsage.services.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Ingestion"])


# ---------------------------------------------------------------------------
# POST /ingest — Upload a financial document
# ---------------------------------------------------------------------------


@router.post(
    "/ingest",
    response_model=IngestResponse,
    status_code=202,
    summary="Upload a financial document for processing",
    description=(
        "Upload a PDF or CSV statement (max 10 MB). Returns immediately with "
        "a task_id; poll GET /ingest/{task_id} for progress and the result."
    ),
)
async def ingest_document_endpoint(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="PDF or CSV financial statement"),
    session: SessionContext = Depends(get_session),
    pipeline: IngestionPipeline = Depends(get_pipeline),
    config: Settings = Depends(get_config),
) -> IngestResponse:
    content = await file.read()
    upload = UploadedFile(
        filename=file.filename or "",
        content=content,
        content_type=file.content_type or "",
    )

    kind = await validate_upload(upload, session, config)

    job = IngestionJob(filename=upload.filename)
    session.jobs[job.task_id] = job
    background_tasks.add_task(run_ingestion_job, pipeline, job, upload, session)

    logger.info(
        "Scheduled ingestion: file='%s' (%s, %d bytes), task_id=%s",
        upload.filename, kind, upload.size, job.task_id,
    )
    return IngestResponse(
        task_id=job.task_id,
        status=job.status,
        message=f"Document '{upload.filename}' uploaded. Processing in progress.",
    )


# ---------------------------------------------------------------------------
# GET /ingest/{task_id} — Poll ingestion status
# ---------------------------------------------------------------------------


@router.get(
    "/ingest/{task_id}",
    response_model=IngestStatusResponse,
    summary="Check document ingestion status",
)
async def get_ingest_status(
    task_id: str,
    session: SessionContext = Depends(get_session),
) -> IngestStatusResponse:
    job = session.jobs.get(task_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Unknown task_id: {task_id}")
    return IngestStatusResponse.model_validate(job)


# ---------------------------------------------------------------------------
# GET /files — Processed files of this session
# ---------------------------------------------------------------------------


@router.get(
    "/files",
    response_model=ProcessedFilesResponse,
    summary="List files processed in this session",
)
async def list_processed_files(
    session: SessionContext = Depends(get_session),
) -> ProcessedFilesResponse:
    return ProcessedFilesResponse(
        files=[ProcessedFileResponse.model_validate(f) for f in session.processed_files],
    )
