# =============================================================================
# Document Ingestion Pipeline
# =============================================================================
#
# INGESTION PIPELINE:
#   1. Validate upload → size, credential, file kind
#   2. Text           → CSV decode / PDF text extraction + OCR   (parser.py)
#   3. Fields         → descriptions, amounts, categories     (extractor.py)
#   4. Charts         → recommended types + aggregations         (charts.py)
#   5. Result         → frozen ProcessedFileData
#
# FAILURE POLICIES (kept separate on purpose, see DESIGN.md):
#   CSV — RAISE:      any failure becomes IngestionFailed and aborts.
#   PDF — SUBSTITUTE: any failure is logged and replaced by mock output.
#
# PROGRESS:
# IngestionProgress reports percentages through a callback. The pipeline
# advances it once per stage (+10, capped at 90) and the caller snaps it to
# 100 when the job settles. No timers involved.
# =============================================================================

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from finsage.config import Settings, settings
from finsage.errors import (
    CredentialMissing,
    EmptyInput,
    FileTooLarge,
    FinSageError,
    IngestionFailed,
)
from finsage.services.charts import ChartRecommendation, generate_chart_recommendations
from finsage.services.extractor import (
    FinancialData,
    extract_financial_data,
    extract_financial_data_from_csv,
)
from finsage.services.latency import Delay
from finsage.services.parser import (
    FileKind,
    PdfTextExtractor,
    UploadedFile,
    detect_file_kind,
    parse_csv_text,
    read_text,
)
from finsage.services.session import SessionContext

logger = logging.getLogger(__name__)

MOCK_PDF_TEXT = (
    "This is a financial statement containing expense information across "
    "various categories including Office Expenses, Rent, Utilities, "
    "Professional Services, and Marketing."
)


class FailurePolicy(StrEnum):
    RAISE = "raise"
    SUBSTITUTE = "substitute"


CSV_FAILURE_POLICY = FailurePolicy.RAISE
PDF_FAILURE_POLICY = FailurePolicy.SUBSTITUTE


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileMetadata:
    filename: str
    filesize: int
    filetype: str
    processed_at: datetime
    ocr_used: bool


@dataclass(frozen=True)
class ProcessedFileData:
    """The result of ingesting one file. Never mutated after creation."""

    text: str
    metadata: FileMetadata
    financial_data: FinancialData | None = None
    charts: ChartRecommendation | None = None


def _metadata(file: UploadedFile, ocr_used: bool) -> FileMetadata:
    return FileMetadata(
        filename=file.filename,
        filesize=file.size,
        filetype=file.content_type,
        processed_at=datetime.now(UTC),
        ocr_used=ocr_used,
    )


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class IngestionProgress:
    """
    Percentage progress for one ingestion.

    `advance()` moves forward by `step` but never past `ceiling` until
    `complete()` snaps to 100. Every change is pushed to `on_update`.
    """

    def __init__(
        self,
        on_update: Callable[[int], None] | None = None,
        step: int = 10,
        ceiling: int = 90,
    ) -> None:
        self.value = 0
        self._on_update = on_update
        self._step = step
        self._ceiling = ceiling

    def _report(self, value: int) -> None:
        self.value = value
        if self._on_update is not None:
            self._on_update(value)

    def advance(self) -> int:
        self._report(min(self.value + self._step, self._ceiling))
        return self.value

    def complete(self) -> int:
        self._report(100)
        return self.value


# ---------------------------------------------------------------------------
# Upload Validation
# ---------------------------------------------------------------------------


async def validate_upload(
    file: UploadedFile,
    session: SessionContext,
    config: Settings | None = None,
) -> FileKind:
    """
    Reject a file before any ingestion work starts.

    Checks run in this order: size limit, empty file, credential, file kind.

    Raises:
        FileTooLarge, EmptyInput, CredentialMissing, UnsupportedFileType
    """
    config = config or settings
    if file.size > config.max_upload_bytes:
        raise FileTooLarge(
            f"File size exceeds the limit of {config.max_upload_mb} MB."
        )
    if file.size == 0:
        raise EmptyInput("Uploaded file is empty.")
    if not await session.has_api_key():
        raise CredentialMissing(
            "Please set your Gemini API key to enable file processing."
        )
    return detect_file_kind(file)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class IngestionPipeline:
    """
    Turns an uploaded PDF or CSV into ProcessedFileData.

    Args:
        config: Settings (CSV extraction policy, upload limits).
        delay: Simulated latency for the PDF stubs.
    """

    def __init__(
        self,
        config: Settings | None = None,
        delay: Delay | None = None,
    ) -> None:
        self._config = config or settings
        self._pdf = PdfTextExtractor(delay=delay)

    async def ingest(
        self,
        file: UploadedFile,
        session: SessionContext,
        progress: IngestionProgress | None = None,
    ) -> ProcessedFileData:
        """
        Validate and process one file.

        Raises:
            FileTooLarge, EmptyInput, CredentialMissing, UnsupportedFileType:
                from validate_upload().
            IngestionFailed: CSV processing failed.
        """
        progress = progress or IngestionProgress()
        kind = await validate_upload(file, session, self._config)
        progress.advance()

        if kind is FileKind.PDF:
            result = await self.process_pdf(file, session, progress)
        else:
            result = await self.process_csv(file, progress)

        progress.complete()
        logger.info(
            "Ingested '%s' (%s, %d bytes, %d line items, ocr=%s)",
            file.filename,
            kind,
            file.size,
            len(result.financial_data) if result.financial_data else 0,
            result.metadata.ocr_used,
        )
        return result

    async def process_pdf(
        self,
        file: UploadedFile,
        session: SessionContext,
        progress: IngestionProgress,
    ) -> ProcessedFileData:
        """PDF path. Never raises: failures fall back to mock_pdf_data()."""
        try:
            text = await self._pdf.extract_text(file)
            progress.advance()

            # OCR always runs; statements are often scanned
            image = await self._pdf.convert_to_image(file)
            progress.advance()
            text = await self._pdf.run_ocr(image, session) or text
            progress.advance()

            financial_data = extract_financial_data(text)
            progress.advance()
            charts = generate_chart_recommendations(financial_data)
            progress.advance()

            return ProcessedFileData(
                text=text,
                financial_data=financial_data,
                metadata=_metadata(file, ocr_used=True),
                charts=charts,
            )
        except Exception as e:
            logger.error("Error processing PDF '%s': %s", file.filename, e)
            return _apply_failure_policy(
                PDF_FAILURE_POLICY, file, e, "Failed to process PDF file",
            )

    async def process_csv(
        self,
        file: UploadedFile,
        progress: IngestionProgress,
    ) -> ProcessedFileData:
        """
        CSV path.

        Raises:
            IngestionFailed: Decoding, parsing or extraction failed.
        """
        try:
            text = read_text(file)
            progress.advance()

            rows = parse_csv_text(text)
            progress.advance()

            financial_data = extract_financial_data_from_csv(
                rows, self._config.csv_extraction,
            )
            progress.advance()
            charts = generate_chart_recommendations(financial_data)
            progress.advance()

            return ProcessedFileData(
                text=text,
                financial_data=financial_data,
                metadata=_metadata(file, ocr_used=False),
                charts=charts,
            )
        except FinSageError:
            raise
        except Exception as e:
            logger.error("Error processing CSV '%s': %s", file.filename, e)
            return _apply_failure_policy(
                CSV_FAILURE_POLICY, file, e, "Failed to process CSV file",
            )


def _apply_failure_policy(
    policy: FailurePolicy,
    file: UploadedFile,
    exc: Exception,
    message: str,
) -> ProcessedFileData:
    if policy is FailurePolicy.SUBSTITUTE:
        logger.warning("Substituting mock data for '%s'", file.filename)
        return mock_pdf_data(file)
    raise IngestionFailed(message) from exc


def mock_pdf_data(file: UploadedFile) -> ProcessedFileData:
    """Stand-in result used when PDF processing fails."""
    financial_data = extract_financial_data("")
    return ProcessedFileData(
        text=MOCK_PDF_TEXT,
        financial_data=financial_data,
        metadata=_metadata(file, ocr_used=True),
        charts=generate_chart_recommendations(financial_data),
    )


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------
# Ingestion runs after the upload request returns (FastAPI BackgroundTasks).
# A job records the state a client polls: PENDING → STARTED → SUCCESS/FAILURE.
# ---------------------------------------------------------------------------


class JobStatus(StrEnum):
    PENDING = "PENDING"
    STARTED = "STARTED"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass
class IngestionJob:
    filename: str
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    result: ProcessedFileData | None = None
    error: str | None = None


async def run_ingestion_job(
    pipeline: IngestionPipeline,
    job: IngestionJob,
    file: UploadedFile,
    session: SessionContext,
) -> None:
    """
    Execute one job and record the outcome on it.

    Errors are stored on the job, never raised: there is no caller left to
    receive them once the upload request has returned.
    """

    def _on_update(value: int) -> None:
        job.progress = value

    job.status = JobStatus.STARTED
    try:
        result = await pipeline.ingest(file, session, IngestionProgress(_on_update))
    except FinSageError as e:
        logger.warning("Ingestion job %s failed: %s", job.task_id, e)
        job.status = JobStatus.FAILURE
        job.error = e.message
        return
    except Exception as e:
        logger.exception("Ingestion job %s crashed: %s", job.task_id, e)
        job.status = JobStatus.FAILURE
        job.error = str(e) or "Unknown error occurred"
        return

    session.add_processed_file(result)
    job.result = result
    job.status = JobStatus.SUCCESS
