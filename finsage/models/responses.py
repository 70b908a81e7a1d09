# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# Shapes of data going OUT of the API. The services work with frozen
# dataclasses; these models read them via `from_attributes=True`, so the
# wire format can evolve without touching service code.
# =============================================================================

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

_ORM = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class ErrorResponse(BaseModel):
    """Body of every domain error response."""

    detail: str = Field(description="Human-readable message, shown as a notification")
    code: int = Field(description="Numeric error code")
    error: str = Field(description="Error class, e.g. 'CredentialMissing'")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class ApiKeyStatusResponse(BaseModel):
    has_api_key: bool
    message: str | None = None


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatMessageResponse(BaseModel):
    id: str
    content: str
    role: str
    confidence: float | None = Field(
        default=None, description="Heuristic confidence (0-1), assistant only",
    )
    timestamp: datetime

    model_config = _ORM


class ChatResponse(BaseModel):
    """Response for POST /chat — the assistant's reply."""

    message: ChatMessageResponse
    rule: str = Field(description="Resolver rule that produced the answer")


class ChatHistoryResponse(BaseModel):
    messages: list[ChatMessageResponse]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class FinancialDataResponse(BaseModel):
    descriptions: list[str]
    amounts: list[float]
    categories: list[str] | None = None
    dates: list[date] | None = None

    model_config = _ORM


class FileMetadataResponse(BaseModel):
    filename: str
    filesize: int
    filetype: str
    processed_at: datetime
    ocr_used: bool

    model_config = _ORM


class CategoryTotalResponse(BaseModel):
    name: str
    value: float

    model_config = _ORM


class MonthlyPointResponse(BaseModel):
    month: str
    expenses: float
    income: float

    model_config = _ORM


class ChartDataResponse(BaseModel):
    category_breakdown: list[CategoryTotalResponse]
    timeseries_data: list[MonthlyPointResponse]
    raw_data: FinancialDataResponse

    model_config = _ORM


class ChartRecommendationResponse(BaseModel):
    recommended: list[str]
    data: ChartDataResponse | None = None

    model_config = _ORM


class ProcessedFileResponse(BaseModel):
    text: str
    financial_data: FinancialDataResponse | None = None
    metadata: FileMetadataResponse
    charts: ChartRecommendationResponse | None = None

    model_config = _ORM


class IngestResponse(BaseModel):
    """
    Response for POST /ingest — upload accepted, processing in background.

    Poll GET /ingest/{task_id} for progress and the result.
    """

    task_id: str = Field(description="Ingestion job ID for polling")
    status: str = Field(default="PENDING")
    message: str


class IngestStatusResponse(BaseModel):
    """Response for GET /ingest/{task_id}."""

    task_id: str
    filename: str
    status: str = Field(description="PENDING, STARTED, SUCCESS or FAILURE")
    progress: int = Field(description="Percentage, 0-100")
    result: ProcessedFileResponse | None = None
    error: str | None = None

    model_config = _ORM


class ProcessedFilesResponse(BaseModel):
    files: list[ProcessedFileResponse]


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


class TrendResponse(BaseModel):
    value: float
    is_positive: bool

    model_config = _ORM


class InsightResponse(BaseModel):
    title: str
    value: str | int
    description: str | None = None
    icon: str | None = None
    trend: TrendResponse | None = None

    model_config = _ORM


class InsightsResponse(BaseModel):
    insights: list[InsightResponse]
    source_filename: str | None = Field(
        default=None,
        description="File the insights were computed from; null for sample data",
    )
