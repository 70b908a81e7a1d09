# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the API. Kept apart from the service-layer
# dataclasses so the wire format and the domain types evolve independently.
# =============================================================================
