# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# Shapes of data coming INTO the API. Blank strings are deliberately NOT
# rejected here: the services raise EmptyInput for them, so clients get the
# same error payload whether they call the API or the services directly.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    Example:
        {"message": "show me expenses"}
    """

    message: str = Field(
        ...,
        max_length=2000,
        description="The question to ask the financial assistant",
        examples=["What is the document about?"],
    )


class ApiKeyRequest(BaseModel):
    """Request body for PUT /settings/api-key."""

    api_key: str = Field(
        ...,
        max_length=512,
        description="Gemini API key. Stored for this session only.",
    )

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"api_key": "AIza..."}]},
    )
