# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines an APIRouter for one dashboard page:
#   - ingest.py: upload, ingestion status, processed files
#   - chat.py: assistant conversation and history
#   - insights.py: automated insight cards
#   - settings.py: session API key management
#   - deps.py: session / resolver / pipeline dependencies
# =============================================================================
