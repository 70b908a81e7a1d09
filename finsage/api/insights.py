# =============================================================================
# Insights API — Automated Dashboard Insights
# =============================================================================
#
#   GET /insights — insight cards for the most recently processed file,
#                   or for the sample summary when nothing was uploaded.
# =============================================================================

from fastapi import APIRouter, Depends

from finsage.api.deps import get_session
from finsage.models.responses import InsightResponse, InsightsResponse
from finsage.services.insights import generate_insights_from_data
from finsage.services.session import SessionContext

router = APIRouter(tags=["Insights"])


@router.get(
    "/insights",
    response_model=InsightsResponse,
    summary="Generate insights from the latest processed file",
)
async def get_insights(
    session: SessionContext = Depends(get_session),
) -> InsightsResponse:
    latest = session.latest_file
    data = latest.financial_data if latest else None
    return InsightsResponse(
        insights=[
            InsightResponse.model_validate(i)
            for i in generate_insights_from_data(data)
        ],
        source_filename=latest.metadata.filename if latest else None,
    )
