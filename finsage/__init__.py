# =============================================================================
# FinancialSage — Financial Document Dashboard Backend
# =============================================================================
# Upload CSV/PDF statements, get chart recommendations and automated
# insights, and chat with a (currently rule-based) financial assistant.
#
# Package structure:
#   finsage/
#   ├── api/          → FastAPI route handlers (ingest, chat, insights, settings)
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── services/     → Business logic (session, resolver, ingestion pipeline,
#   │                    charts, insights)
#   ├── config.py     → pydantic-settings configuration
#   ├── errors.py     → error taxonomy
#   └── main.py       → application factory
# =============================================================================
