# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core logic, separated from API handlers:
#   - session.py: per-session credential, chat history and uploads
#   - resolver.py: rule-based chat answers (exact → substring → context)
#   - parser.py: file kinds, naive CSV grid, PDF text/OCR stubs
#   - extractor.py: text/CSV → FinancialData
#   - charts.py: chart recommendations and category aggregation
#   - ingestion.py: upload validation, pipeline, progress and jobs
#   - insights.py: summary statistics and dashboard insight cards
#   - latency.py: injectable simulated latency
# =============================================================================
