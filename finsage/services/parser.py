# =============================================================================
# Document Parser — File Kinds, CSV Grid, PDF Text/OCR Stubs
# =============================================================================
#
# Step 1 of ingestion: turn the uploaded bytes into text.
#
#   CSV → decode as UTF-8, split on newlines then commas (naive grid)
#   PDF → direct text extraction (stub, returns "") + OCR (stub, returns a
#         fixed statement text)
#
# DESIGN DECISION: Our own UploadedFile dataclass rather than passing
# FastAPI's UploadFile downstream. The pipeline only needs name, type and
# bytes, and tests can build one without a request.
#
# The CSV grid does not handle quoted fields or embedded delimiters; the
# sample statements the dashboard ships with never contain either.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from finsage.errors import CredentialMissing, UnsupportedFileType
from finsage.services.latency import Delay, get_delay
from finsage.services.session import SessionContext

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
CSV_CONTENT_TYPE = "text/csv"

# Text the OCR stub "reads" from every PDF
OCR_STATEMENT_TEXT = """
FINANCIAL STATEMENT - Q2 2023
XYZ Corporation

EXPENSE SUMMARY:
Office Supplies          $423.45
Rent Payment - Q2        $5,200.00
Utilities - Electricity  $356.78
Utilities - Internet     $129.99
Consulting Services      $2,800.00
Marketing - Digital      $1,500.00
Employee Benefits        $3,200.00
Software Subscriptions   $899.97
Travel Expenses          $1,245.67
Client Entertainment     $678.30

TOTAL EXPENSES:          $16,434.16

INCOME SUMMARY:
Product Sales            $15,780.00
Services                 $8,800.00

TOTAL INCOME:            $24,580.00

NET PROFIT:              $8,145.84

Prepared by: Financial Department
Date: June 30, 2023
"""

TEXT_EXTRACTION_DELAY_SECONDS = 1.0
IMAGE_CONVERSION_DELAY_SECONDS = 1.0
OCR_DELAY_SECONDS = 2.0


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


class FileKind(StrEnum):
    PDF = "pdf"
    CSV = "csv"


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded document, fully read into memory."""

    filename: str
    content: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


def detect_file_kind(file: UploadedFile) -> FileKind:
    """
    PDF by content type; CSV by content type or `.csv` extension.

    Raises:
        UnsupportedFileType: Anything else.
    """
    if file.content_type == PDF_CONTENT_TYPE:
        return FileKind.PDF
    if file.content_type == CSV_CONTENT_TYPE or file.filename.lower().endswith(".csv"):
        return FileKind.CSV
    raise UnsupportedFileType(
        "Unsupported file type. Please upload a PDF or CSV file."
    )


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def read_text(file: UploadedFile) -> str:
    """Decode the upload as UTF-8. Raises UnicodeDecodeError on binary data."""
    return file.content.decode("utf-8")


def parse_csv_text(text: str) -> list[list[str]]:
    """Split into rows on '\\n', then cells on ','. Trailing newline keeps an empty row."""
    return [row.split(",") for row in text.split("\n")]


# ---------------------------------------------------------------------------
# PDF (stubs for the future Gemini integration)
# ---------------------------------------------------------------------------


class PdfTextExtractor:
    """
    Text extraction for PDFs.

    Both steps are stubs: direct extraction returns "" (as for a scanned
    PDF), and OCR returns OCR_STATEMENT_TEXT after a simulated API delay.
    """

    def __init__(self, delay: Delay | None = None) -> None:
        self._delay = delay or get_delay()

    async def extract_text(self, file: UploadedFile) -> str:
        logger.info("Extracting text from PDF: %s", file.filename)
        await self._delay(TEXT_EXTRACTION_DELAY_SECONDS)
        return ""

    async def convert_to_image(self, file: UploadedFile) -> bytes:
        logger.debug("Converting PDF to image: %s", file.filename)
        await self._delay(IMAGE_CONVERSION_DELAY_SECONDS)
        return file.content

    async def run_ocr(self, image: bytes, session: SessionContext) -> str:
        """
        Raises:
            CredentialMissing: The session has no usable API key.
        """
        if not await session.has_api_key():
            raise CredentialMissing("Gemini API key is not set")
        logger.info("Running OCR on %d-byte page image", len(image))
        await self._delay(OCR_DELAY_SECONDS)
        return OCR_STATEMENT_TEXT
